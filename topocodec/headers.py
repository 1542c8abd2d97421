from .lib import (
  bits_per_segment, num_words, crc8,
  MAX_SEGMENTS, WORD_BITS, WORD_BYTES,
)

class FormatError(Exception):
  pass

class IncompleteStreamError(FormatError):
  """Fewer bytes or words were available than the declared counts require."""
  pass

class UndefinedWidthError(ValueError):
  """The number of segments yields no defined bit width (e.g. zero segments)."""
  pass

class UnsupportedWidthError(ValueError):
  """The bit width required by the number of segments exceeds 32 bits."""
  pass

class BackendFailure(RuntimeError):
  """An optional compression backend (zfp, zlib) reported a failure."""
  pass

def validate_width(num_segments:int, stage:str) -> int:
  """Returns the bit width for num_segments or raises."""
  bits = bits_per_segment(num_segments)
  if bits is None:
    raise UndefinedWidthError(
      f"{stage}: number of segments ({num_segments}) yields an undefined bit width."
    )
  if bits > WORD_BITS or num_segments > MAX_SEGMENTS:
    raise UnsupportedWidthError(
      f"{stage}: number of segments ({num_segments}) requires {bits} bits per segment. "
      f"At most {MAX_SEGMENTS} segments ({WORD_BITS - 1} bits) are supported."
    )
  return bits

class SegmentationHeader:
  """
  Out of band metadata required to decode a packed segmentation.

  The packed words are not self describing, so the vertex and
  segment counts travel in this small header.
  """
  MAGIC = b'tcsg'
  HEADER_BYTES = 13

  def __init__(
    self,
    num_vertices:int,
    num_segments:int,
    crc:int = None,
  ):
    self.num_vertices = int(num_vertices)
    self.num_segments = int(num_segments)
    self.crc = crc

  @classmethod
  def frombytes(kls, buffer:bytes, ignore_crc_check:bool = False):
    if len(buffer) < SegmentationHeader.HEADER_BYTES:
      raise FormatError(f"Bytestream too short. Got: {bytes(buffer)}")
    if bytes(buffer[:4]) != SegmentationHeader.MAGIC:
      raise FormatError(f"Incorrect magic number. Got: {bytes(buffer[:4])} Expected: {SegmentationHeader.MAGIC}")

    stored_crc = int(buffer[12])
    computed_crc = crc8(buffer[4:12])
    if not ignore_crc_check and stored_crc != computed_crc:
      raise FormatError(
        f"The header appears to be corrupted. CRC check failed. "
        f"Computed: {computed_crc} Stored: {stored_crc}"
      )

    num_vertices = int.from_bytes(buffer[4:8], byteorder='little', signed=True)
    num_segments = int.from_bytes(buffer[8:12], byteorder='little', signed=True)
    if num_vertices < 0 or num_segments < 0:
      raise FormatError(
        f"Header counts must be non-negative. "
        f"Got: num_vertices={num_vertices} num_segments={num_segments}"
      )

    return SegmentationHeader(
      num_vertices=num_vertices,
      num_segments=num_segments,
      crc=stored_crc,
    )

  def tobytes(self) -> bytes:
    interpretable_data = b''.join([
      self.num_vertices.to_bytes(4, 'little', signed=True),
      self.num_segments.to_bytes(4, 'little', signed=True),
    ])
    crc = crc8(interpretable_data).to_bytes(1, 'little')

    return b''.join([
      self.MAGIC,
      interpretable_data,
      crc,
    ])

  @property
  def bits_per_segment(self) -> int:
    return validate_width(self.num_segments, "header")

  @property
  def num_words(self) -> int:
    return num_words(self.num_vertices, self.bits_per_segment)

  @property
  def payload_bytes(self) -> int:
    return self.num_words * WORD_BYTES

  def details(self) -> str:
    return f"""
    magic:         {SegmentationHeader.MAGIC}
    vertices:      {self.num_vertices}
    segments:      {self.num_segments}
    crc:           {self.crc}
    ---
    bits/segment:  {self.bits_per_segment}
    words:         {self.num_words}
    payload bytes: {self.payload_bytes}
    """

  def __eq__(self, other):
    return (
      isinstance(other, SegmentationHeader)
      and self.num_vertices == other.num_vertices
      and self.num_segments == other.num_segments
    )

  def __repr__(self):
    return str(self.__dict__)
