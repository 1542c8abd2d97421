"""
Compact segmentation codec.

Each vertex is assigned one of num_segments clusters. The ids
are packed back to back into 32-bit little endian containers
with no padding between them. Id i occupies stream bits
[i*w, (i+1)*w), LSB first, so an id that does not fit in what
remains of a container puts its low bits at the top of that
container and its high bits at the bottom of the next one.

Neither the number of vertices nor the number of segments is
stored in the packed words. See SegmentationHeader for a place
to keep them.
"""
from typing import Tuple, Union

import numpy as np
import numpy.typing as npt

from .headers import (
  IncompleteStreamError, validate_width
)
from .lib import (
  num_words, compute_dtype,
  WORD_DTYPE, WORD_BYTES,
)

def _bit_positions(num_vertices:int, bits:int):
  positions = np.arange(num_vertices, dtype=np.uint64) * np.uint64(bits)
  word_index = (positions >> np.uint64(5)).astype(np.intp)
  shift = positions & np.uint64(31)
  return word_index, shift

def _as_words(words) -> np.ndarray:
  if isinstance(words, (bytes, bytearray, memoryview)):
    return np.frombuffer(words, dtype=WORD_DTYPE, count=len(words) // WORD_BYTES)

  words = np.asarray(words)
  if words.size == 0:
    return np.zeros((0,), dtype=WORD_DTYPE)
  if not np.issubdtype(words.dtype, np.integer):
    raise TypeError(f"Packed words must be integers. Got: {words.dtype}")
  # signed containers are reinterpreted bit for bit
  return words.reshape(-1).astype(WORD_DTYPE, copy=False)

def encode(
  segmentation:npt.ArrayLike,
  num_vertices:int,
  num_segments:int,
) -> np.ndarray:
  """
  Pack a segmentation into 32-bit containers.

  segmentation: integer ids, each in [0, num_segments)
  num_vertices: number of ids to pack from the front of segmentation
  num_segments: number of distinct segments, decides the bit width

  Returns: uint32 array of exactly ceil(num_vertices * bits / 32)
    words. The number of bytes written is its nbytes.
  """
  bits = validate_width(num_segments, "encode")

  segmentation = np.asarray(segmentation).reshape(-1)
  num_vertices = int(num_vertices)

  if num_vertices < 0:
    raise ValueError(f"encode: number of vertices must be non-negative. Got: {num_vertices}")
  if segmentation.size < num_vertices:
    raise IncompleteStreamError(
      f"encode: expected {num_vertices} segment ids, got {segmentation.size}."
    )
  if num_vertices == 0:
    return np.zeros((0,), dtype=WORD_DTYPE)

  segmentation = segmentation[:num_vertices]
  if not np.issubdtype(segmentation.dtype, np.integer):
    raise TypeError(f"encode: segment ids must be integers. Got: {segmentation.dtype}")

  lowest, highest = int(segmentation.min()), int(segmentation.max())
  if lowest < 0 or highest >= num_segments:
    raise ValueError(
      f"encode: segment ids must lie in [0, {num_segments}). "
      f"Got min: {lowest} max: {highest}"
    )

  nwords = num_words(num_vertices, bits)
  word_index, shift = _bit_positions(num_vertices, bits)

  # a field shifted into place spans at most two containers
  fields = segmentation.astype(np.uint64) << shift
  stream = np.zeros((nwords + 1,), dtype=np.uint64)
  np.bitwise_or.at(stream, word_index, fields & np.uint64(0xFFFFFFFF))
  np.bitwise_or.at(stream, word_index + 1, fields >> np.uint64(32))

  return stream[:nwords].astype(WORD_DTYPE)

def decode(
  words:Union[npt.ArrayLike, bytes],
  num_vertices:int,
  num_segments:int,
) -> np.ndarray:
  """
  Unpack num_vertices segment ids from 32-bit containers.

  words may be an integer array (signed containers are
  treated as unsigned) or a little endian bytes-like buffer.
  Words beyond those needed are ignored, as are the
  padding bits at the end of the last container.

  Returns: array of the narrowest unsigned dtype that
    holds num_segments - 1.
  """
  bits = validate_width(num_segments, "decode")

  num_vertices = int(num_vertices)
  if num_vertices < 0:
    raise ValueError(f"decode: number of vertices must be non-negative. Got: {num_vertices}")

  dtype = compute_dtype(num_segments - 1)
  nwords = num_words(num_vertices, bits)
  words = _as_words(words)

  if words.size < nwords:
    raise IncompleteStreamError(
      f"decode: {num_vertices} vertices at {bits} bits per segment need "
      f"{nwords} words ({nwords * WORD_BYTES} bytes). Got: {words.size} words."
    )
  if num_vertices == 0:
    return np.zeros((0,), dtype=dtype)

  stream = np.zeros((nwords + 1,), dtype=np.uint64)
  stream[:nwords] = words[:nwords]

  word_index, shift = _bit_positions(num_vertices, bits)
  combined = stream[word_index] | (stream[word_index + 1] << np.uint64(32))
  mask = np.uint64((1 << bits) - 1)

  return ((combined >> shift) & mask).astype(dtype)

def write_compact_segmentation(
  filelike,
  segmentation:npt.ArrayLike,
  num_vertices:int,
  num_segments:int,
) -> int:
  """Write the packed segmentation to a file-like object. Returns bytes written."""
  binary = encode(segmentation, num_vertices, num_segments).tobytes()
  filelike.write(binary)
  return len(binary)

def read_compact_segmentation(
  filelike,
  num_vertices:int,
  num_segments:int,
) -> Tuple[np.ndarray, int]:
  """
  Read a packed segmentation from a file-like object
  positioned at its first word.

  Returns: (segmentation, bytes read)
  """
  bits = validate_width(num_segments, "read")
  nbytes = num_words(num_vertices, bits) * WORD_BYTES

  binary = filelike.read(nbytes) if nbytes > 0 else b''
  if len(binary) < nbytes:
    raise IncompleteStreamError(
      f"read: expected {nbytes} bytes of packed segmentation "
      f"({num_vertices} vertices, {num_segments} segments). Got: {len(binary)}"
    )

  return decode(binary, num_vertices, num_segments), nbytes
