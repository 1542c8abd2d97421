"""
Persistence index codec.

The persistence index links scalar field values to the vertices
where they occur, plus a list of constraints (vertex, value, type)
that must be reconstructed exactly.

Format (little endian, packed):

  [m : int32]
  [id : int32][value : float64] * m
  [c : int32]
  [id : int32][value : float64][type : int32] * c
"""
from typing import Optional, Tuple

import numpy as np

from .headers import IncompleteStreamError

COUNT_DTYPE = np.dtype('<i4')
MAPPING_DTYPE = np.dtype([
  ('id', '<i4'),
  ('value', '<f8'),
])
CONSTRAINT_DTYPE = np.dtype([
  ('id', '<i4'),
  ('value', '<f8'),
  ('type', '<i4'),
])
INT32_MIN = int(np.iinfo(np.int32).min)
INT32_MAX = int(np.iinfo(np.int32).max)

def _int32_field(values, stage:str) -> np.ndarray:
  """Checks integer values fit an int32 field before storing them."""
  values = np.asarray(values)
  if values.size == 0:
    return np.zeros((0,), dtype='<i4')

  if values.dtype == object:
    ints = [ int(v) for v in values.reshape(-1).tolist() ]
    lowest, highest = min(ints), max(ints)
  elif np.issubdtype(values.dtype, np.integer):
    lowest, highest = int(values.min()), int(values.max())
  else:
    raise TypeError(f"{stage}: values must be integers. Got: {values.dtype}")

  if lowest < INT32_MIN or highest > INT32_MAX:
    bad = lowest if lowest < INT32_MIN else highest
    raise ValueError(
      f"{stage}: {bad} does not fit in a 32-bit signed field "
      f"[{INT32_MIN}, {INT32_MAX}]."
    )

  return values.astype('<i4')

def _running_extremum(values:np.ndarray, fn) -> float:
  # NaN only when every value is NaN
  return float(fn.reduce(values))

class PersistenceIndex:
  """
  Decoded persistence index.

  mappings and constraints hold the sequences in the order
  they were stored. The two sorted views of the mapping are
  computed on demand.
  """
  def __init__(self, mappings:np.ndarray, constraints:np.ndarray):
    self.mappings = mappings
    self.constraints = constraints

  @property
  def mappings_by_id(self) -> np.ndarray:
    order = np.argsort(self.mappings['id'], kind='stable')
    return self.mappings[order]

  @property
  def mappings_by_value(self) -> np.ndarray:
    """Sorted by scalar value, ties broken by vertex id."""
    order = np.lexsort((self.mappings['id'], self.mappings['value']))
    return self.mappings[order]

  @property
  def num_constraints(self) -> int:
    return len(self.constraints)

  @property
  def min(self) -> Optional[float]:
    if self.num_constraints == 0:
      return None
    return _running_extremum(self.constraints['value'], np.fmin)

  @property
  def max(self) -> Optional[float]:
    if self.num_constraints == 0:
      return None
    return _running_extremum(self.constraints['value'], np.fmax)

  @property
  def nbytes(self) -> int:
    return 2 * COUNT_DTYPE.itemsize + self.mappings.nbytes + self.constraints.nbytes

  def __len__(self):
    return len(self.mappings)

  def __repr__(self):
    return (
      f"PersistenceIndex(mappings={len(self.mappings)}, "
      f"constraints={self.num_constraints}, min={self.min}, max={self.max})"
    )

def to_mapping_array(mapping) -> np.ndarray:
  """
  Accepts an iterable of (value, id) pairs, a { id: value }
  dict, or a MAPPING_DTYPE array. Order is preserved.
  """
  if isinstance(mapping, np.ndarray) and mapping.dtype.names is not None:
    arr = np.empty((mapping.size,), dtype=MAPPING_DTYPE)
    arr['id'] = _int32_field(mapping['id'], 'mapping id')
    arr['value'] = mapping['value']
  elif isinstance(mapping, dict):
    arr = np.empty((len(mapping),), dtype=MAPPING_DTYPE)
    arr['id'] = _int32_field(list(mapping.keys()), 'mapping id')
    arr['value'] = list(mapping.values())
  else:
    pairs = list(mapping)
    arr = np.empty((len(pairs),), dtype=MAPPING_DTYPE)
    arr['value'] = [ value for value, idv in pairs ]
    arr['id'] = _int32_field([ idv for value, idv in pairs ], 'mapping id')

  if np.unique(arr['id']).size != arr.size:
    raise ValueError("Persistence mapping vertex ids must be unique.")

  return arr

def to_constraint_array(constraints) -> np.ndarray:
  """Accepts (id, value, type) triples or a CONSTRAINT_DTYPE array."""
  if isinstance(constraints, np.ndarray) and constraints.dtype.names is not None:
    arr = np.empty((constraints.size,), dtype=CONSTRAINT_DTYPE)
    arr['id'] = _int32_field(constraints['id'], 'constraint id')
    arr['value'] = constraints['value']
    arr['type'] = _int32_field(constraints['type'], 'constraint type')
    return arr

  triples = list(constraints)
  arr = np.empty((len(triples),), dtype=CONSTRAINT_DTYPE)
  arr['id'] = _int32_field([ t[0] for t in triples ], 'constraint id')
  arr['value'] = [ t[1] for t in triples ]
  arr['type'] = _int32_field([ t[2] for t in triples ], 'constraint type')
  return arr

def encode(mapping, constraints) -> bytes:
  """
  Serialize the mapping and constraints in the order supplied.
  No sorting is performed. The number of bytes written is
  the length of the result.
  """
  mapping = to_mapping_array(mapping)
  constraints = to_constraint_array(constraints)

  return b''.join([
    len(mapping).to_bytes(4, 'little', signed=True),
    mapping.tobytes(),
    len(constraints).to_bytes(4, 'little', signed=True),
    constraints.tobytes(),
  ])

def _read_count(binary, offset:int, stage:str) -> int:
  if len(binary) < offset + COUNT_DTYPE.itemsize:
    raise IncompleteStreamError(
      f"{stage}: expected a 4 byte count at offset {offset}. "
      f"Got: {max(len(binary) - offset, 0)} bytes."
    )
  count = int.from_bytes(binary[offset:offset+4], 'little', signed=True)
  if count < 0:
    raise IncompleteStreamError(f"{stage}: negative count {count} at offset {offset}.")
  return count

def _read_records(binary, offset:int, count:int, dtype:np.dtype, stage:str) -> np.ndarray:
  nbytes = count * dtype.itemsize
  if len(binary) < offset + nbytes:
    raise IncompleteStreamError(
      f"{stage}: {count} records need {nbytes} bytes at offset {offset}. "
      f"Got: {max(len(binary) - offset, 0)} bytes."
    )
  if count == 0:
    return np.zeros((0,), dtype=dtype)
  return np.frombuffer(binary, dtype=dtype, offset=offset, count=count).copy()

def decode(binary:bytes, offset:int = 0) -> Tuple[PersistenceIndex, int]:
  """
  Decode a persistence index starting at offset.

  Returns: (PersistenceIndex, bytes read)
  """
  start = offset

  num_mappings = _read_count(binary, offset, "mapping size")
  offset += COUNT_DTYPE.itemsize
  mappings = _read_records(binary, offset, num_mappings, MAPPING_DTYPE, "mappings")
  offset += mappings.nbytes

  num_constraints = _read_count(binary, offset, "constraint count")
  offset += COUNT_DTYPE.itemsize
  constraints = _read_records(binary, offset, num_constraints, CONSTRAINT_DTYPE, "constraints")
  offset += constraints.nbytes

  return PersistenceIndex(mappings, constraints), offset - start

def write_persistence_index(filelike, mapping, constraints) -> int:
  """Write the persistence index to a file-like object. Returns bytes written."""
  binary = encode(mapping, constraints)
  filelike.write(binary)
  return len(binary)

def read_persistence_index(filelike) -> Tuple[PersistenceIndex, int]:
  """
  Read a persistence index from a file-like object positioned
  at its first byte. Reads exactly the bytes it needs.

  Returns: (PersistenceIndex, bytes read)
  """
  head = filelike.read(COUNT_DTYPE.itemsize)
  num_mappings = _read_count(head, 0, "mapping size")
  body = filelike.read(num_mappings * MAPPING_DTYPE.itemsize)
  mappings = _read_records(body, 0, num_mappings, MAPPING_DTYPE, "mappings")

  head = filelike.read(COUNT_DTYPE.itemsize)
  num_constraints = _read_count(head, 0, "constraint count")
  body = filelike.read(num_constraints * CONSTRAINT_DTYPE.itemsize)
  constraints = _read_records(body, 0, num_constraints, CONSTRAINT_DTYPE, "constraints")

  index = PersistenceIndex(mappings, constraints)
  return index, index.nbytes
