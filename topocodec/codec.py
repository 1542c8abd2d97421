from typing import Optional

import numpy as np
import numpy.typing as npt

from . import segmentation as segcodec
from .headers import (
  SegmentationHeader, FormatError, IncompleteStreamError
)
from .lib import crc32c, compute_dtype, MAX_SEGMENTS

# parts of the file:
# HEADER, PACKED SEGMENTATION, CRC32C(PACKED SEGMENTATION)
CRC_BYTES = 4

def header(binary:bytes, ignore_crc_check:bool = False) -> SegmentationHeader:
  """Decode the header from a topocodec segmentation bytestream."""
  return SegmentationHeader.frombytes(binary, ignore_crc_check=ignore_crc_check)

def nbytes(binary:bytes) -> int:
  """Size in bytes of the decompressed segmentation."""
  head = header(binary)
  itemsize = np.dtype(compute_dtype(max(head.num_segments - 1, 0))).itemsize
  return head.num_vertices * itemsize

def components(binary:bytes) -> dict:
  head = header(binary)
  hb = SegmentationHeader.HEADER_BYTES
  pb = head.payload_bytes

  if len(binary) < hb + pb + CRC_BYTES:
    raise IncompleteStreamError(
      f"Expected {hb + pb + CRC_BYTES} bytes for {head.num_vertices} vertices "
      f"and {head.num_segments} segments. Got: {len(binary)}"
    )

  return {
    'header': binary[:hb],
    'segmentation': binary[hb:hb+pb],
    'crc': binary[hb+pb:hb+pb+CRC_BYTES],
  }

def component_lengths(binary:bytes) -> dict:
  return { k:len(v) for k,v in components(binary).items() }

def segmentation_crc(binary:bytes) -> int:
  """Retrieve the stored crc32c of the packed segmentation."""
  return int.from_bytes(components(binary)['crc'], 'little')

def compress(
  segmentation:npt.ArrayLike,
  num_segments:Optional[int] = None,
) -> bytes:
  """
  Compress a per-vertex segmentation into a self describing
  bytestream: header, packed words, and a crc32c of the words.

  num_segments: number of possible segment ids. If not
    provided, max(segmentation) + 1 is used.
  """
  segmentation = np.asarray(segmentation).reshape(-1)

  if num_segments is None:
    num_segments = 1
    if segmentation.size > 0:
      num_segments = int(segmentation.max()) + 1

  if segmentation.size > MAX_SEGMENTS:
    raise ValueError(
      f"At most {MAX_SEGMENTS} vertices can be recorded in the header. Got: {segmentation.size}"
    )

  head = SegmentationHeader(
    num_vertices=segmentation.size,
    num_segments=num_segments,
  )
  packed = segcodec.encode(segmentation, segmentation.size, num_segments).tobytes()

  return b''.join([
    head.tobytes(),
    packed,
    crc32c(packed).to_bytes(CRC_BYTES, 'little'),
  ])

def decompress(binary:bytes, ignore_crc_check:bool = False) -> np.ndarray:
  """Decompress a topocodec bytestream into a 1D segmentation array."""
  head = header(binary, ignore_crc_check=ignore_crc_check)
  parts = components(binary)

  if not ignore_crc_check:
    stored = int.from_bytes(parts['crc'], 'little')
    computed = crc32c(bytes(parts['segmentation']))
    if stored != computed:
      raise FormatError(
        f"Segmentation crc32c did not match stored version. "
        f"Stored: {stored} Computed: {computed}"
      )

  return segcodec.decode(
    parts['segmentation'], head.num_vertices, head.num_segments
  )

def check(binary:bytes) -> dict:
  """Test for file corruption, reporting which sections are damaged."""
  sections = {
    "header": None,
    "segmentation": None,
  }

  try:
    head = header(binary)
  except FormatError:
    sections["header"] = False
    return sections

  sections["header"] = True

  try:
    parts = components(binary)
  except (FormatError, ValueError):
    sections["segmentation"] = False
    return sections

  stored = int.from_bytes(parts['crc'], 'little')
  sections["segmentation"] = (stored == crc32c(bytes(parts['segmentation'])))
  return sections

def ok(binary:bytes) -> bool:
  """
  Runs check for file corruption but only reports
  whether the file is ok as a whole.
  """
  report = check(binary)
  return bool(report["header"]) and bool(report["segmentation"])
