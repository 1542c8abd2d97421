"""
Optional compression backends for auxiliary residual buffers.

zfp: fixed accuracy transform coding of dense 2D or 3D double
  grids. Requires zfpy (pip install zfpy).
zlib: generic deflate of arbitrary byte buffers.

Neither is required by the segmentation or persistence index codecs.
"""
import zlib

import numpy as np
import numpy.typing as npt

from .headers import BackendFailure

def _import_zfpy():
  try:
    import zfpy
  except ImportError:
    print("This function requires zfpy. pip install zfpy")
    raise
  return zfpy

def grid_shape(nx:int, ny:int, nz:int) -> tuple:
  """
  Shape (slowest to fastest axis) of the zfp field for an
  nx * ny * nz grid with x varying fastest. A grid with one
  unit axis is treated as 2D. One dimensional grids are rejected.
  """
  nx, ny, nz = int(nx), int(ny), int(nz)
  if min(nx, ny, nz) < 1:
    raise ValueError(f"Grid dimensions must be positive. Got: {(nx, ny, nz)}")

  if nx == 1 or ny == 1 or nz == 1:
    if nx + ny == 2 or ny + nz == 2 or nx + nz == 2:
      raise ValueError(f"One-dimensional arrays not supported. Got: {(nx, ny, nz)}")
    n1 = nx if nx != 1 else ny
    n2 = ny if (nx != 1 and ny != 1) else nz
    return (n2, n1)

  return (nz, ny, nx)

def compress_with_zfp(
  array:npt.ArrayLike,
  nx:int, ny:int, nz:int,
  tolerance:float,
) -> bytes:
  """
  Compress a flat array of nx * ny * nz doubles (x fastest)
  in zfp fixed accuracy mode. The stream carries a full zfp
  header so it can be decoded without the grid size.
  """
  zfpy = _import_zfpy()

  shape = grid_shape(nx, ny, nz)
  array = np.ascontiguousarray(array, dtype=np.float64).reshape(-1)
  if array.size != int(np.prod(shape)):
    raise ValueError(
      f"Array of {array.size} values does not match grid {(nx, ny, nz)}."
    )

  try:
    binary = zfpy.compress_numpy(
      array.reshape(shape), tolerance=float(tolerance), write_header=True
    )
  except Exception as err:
    raise BackendFailure(f"zfp compression failed for grid {(nx, ny, nz)}: {err}") from err

  if len(binary) == 0:
    raise BackendFailure(f"zfp compression produced no data for grid {(nx, ny, nz)}.")

  return binary

def decompress_with_zfp(binary:bytes) -> np.ndarray:
  """Decompress a zfp stream written by compress_with_zfp into a flat float64 array."""
  zfpy = _import_zfpy()

  try:
    array = zfpy.decompress_numpy(bytes(binary))
  except Exception as err:
    raise BackendFailure(f"zfp decompression of {len(binary)} bytes failed: {err}") from err

  return np.ascontiguousarray(array, dtype=np.float64).reshape(-1)

def zlib_dest_len(source_len:int) -> int:
  """Upper bound of the deflated size of source_len bytes (zlib compressBound)."""
  source_len = int(source_len)
  return (
    source_len
    + (source_len >> 12)
    + (source_len >> 14)
    + (source_len >> 25)
    + 13
  )

def compress_with_zlib(source:bytes, dest_len:int = None, level:int = -1) -> bytes:
  """
  Deflate source. dest_len is the capacity of the destination
  and defaults to zlib_dest_len(len(source)).
  """
  if dest_len is None:
    dest_len = zlib_dest_len(len(source))

  try:
    binary = zlib.compress(bytes(source), level)
  except zlib.error as err:
    raise BackendFailure(f"zlib compression of {len(source)} bytes failed: {err}") from err

  if len(binary) > dest_len:
    raise BackendFailure(
      f"zlib output ({len(binary)} bytes) exceeds destination capacity ({dest_len} bytes)."
    )
  return binary

def decompress_with_zlib(source:bytes, dest_len:int) -> bytes:
  """Inflate source into at most dest_len bytes."""
  dest_len = int(dest_len)
  decompressor = zlib.decompressobj()
  try:
    # one byte of slack reveals an overflow
    binary = decompressor.decompress(bytes(source), dest_len + 1)
  except zlib.error as err:
    raise BackendFailure(f"zlib decompression of {len(source)} bytes failed: {err}") from err

  if len(binary) > dest_len:
    raise BackendFailure(
      f"zlib output exceeds destination capacity ({dest_len} bytes)."
    )
  if not decompressor.eof:
    raise BackendFailure(f"zlib stream of {len(source)} bytes is truncated.")
  return binary
