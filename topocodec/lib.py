from typing import List, Optional

import numpy as np
import google_crc32c

WORD_BITS = 32
WORD_BYTES = 4
WORD_DTYPE = np.dtype('<u4')
MAX_SEGMENTS = int(np.iinfo(np.int32).max)

def log2(val:int) -> Optional[int]:
  """
  Integer floor of log2(val).

  Returns None (undefined) for val <= 0 and 0 for val == 1.
  """
  val = int(val)
  if val <= 0:
    return None
  return val.bit_length() - 1

def bits_per_segment(num_segments:int) -> Optional[int]:
  """
  Width of one packed segment id. One more bit than
  log2 is always reserved, so 3 segments take 2 bits
  and 4 segments take 3.

  Returns None when num_segments gives no defined width.
  """
  exponent = log2(num_segments)
  if exponent is None:
    return None
  return exponent + 1

def num_words(num_vertices:int, bits:int) -> int:
  """Number of 32-bit containers needed for num_vertices ids of width bits."""
  return (int(num_vertices) * int(bits) + WORD_BITS - 1) // WORD_BITS

def crc32c(buffer) -> int:
  return int.from_bytes(
    google_crc32c.Checksum(buffer).digest(),
    'big'
  )

def crc8(data:List[int]) -> int:
  # use implicit +1 representation for right shift, LSB first
  polynomial = 0xe7 # implicit
  crc = 0xFF # detects zeroed data better than 0x00
  for i in range(len(data)):
    crc ^= data[i]
    for k in range(8):
      if crc & 1:
        crc = (crc >> 1) ^ polynomial
      else:
        crc = crc >> 1

  return int(crc & 0xFF)

def compute_byte_width(x) -> int:
  byte_width = 8
  if x <= np.iinfo(np.uint8).max:
    byte_width = 1
  elif x <= np.iinfo(np.uint16).max:
    byte_width = 2
  elif x <= np.iinfo(np.uint32).max:
    byte_width = 4

  return byte_width

width2dtype = {
  1: np.uint8,
  2: np.uint16,
  4: np.uint32,
  8: np.uint64,
}

def compute_dtype(x) -> np.dtype:
  return width2dtype[compute_byte_width(x)]
