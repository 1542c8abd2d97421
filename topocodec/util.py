from typing import Optional

import io
import os
import gzip
import lzma

import numpy as np

from .codec import compress, decompress
from .headers import SegmentationHeader

def _load(filelike, size:int = -1):
  if hasattr(filelike, 'read'):
    binary = filelike.read(size)
  elif (
    isinstance(filelike, str)
    and os.path.splitext(filelike)[1] == '.gz'
  ):
    with gzip.open(filelike, 'rb') as f:
      binary = f.read(size)
  elif (
    isinstance(filelike, str)
    and os.path.splitext(filelike)[1] in ('.lzma', '.xz')
  ):
    with lzma.open(filelike, 'rb') as f:
      binary = f.read(size)
  else:
    with open(filelike, 'rb') as f:
      binary = f.read(size)

  return binary

def load_header(filelike, **kwargs) -> SegmentationHeader:
  """Load the header using minimal data loading."""
  binary = _load(filelike, SegmentationHeader.HEADER_BYTES)
  return SegmentationHeader.frombytes(binary, **kwargs)

def bload(filelike) -> bytes:
  """Load the binary file."""
  return _load(filelike)

def load(filelike, ignore_crc_check:bool = False) -> np.ndarray:
  """Load a segmentation from a file-like object or file path."""
  return decompress(_load(filelike), ignore_crc_check=ignore_crc_check)

def load_numpy(filelike) -> np.ndarray:
  f = io.BytesIO(_load(filelike))
  return np.load(f)

def save(
  segmentation:np.ndarray,
  filelike,
  num_segments:Optional[int] = None,
):
  """Save a segmentation into the file-like object or file path."""
  binary = compress(segmentation, num_segments=num_segments)

  if hasattr(filelike, 'write'):
    filelike.write(binary)
  elif (
    isinstance(filelike, str)
    and os.path.splitext(filelike)[1] == '.gz'
  ):
    with gzip.open(filelike, 'wb') as f:
      f.write(binary)
  elif (
    isinstance(filelike, str)
    and os.path.splitext(filelike)[1] in ('.lzma', '.xz')
  ):
    with lzma.open(filelike, 'wb') as f:
      f.write(binary)
  else:
    with open(filelike, 'wb') as f:
      f.write(binary)
