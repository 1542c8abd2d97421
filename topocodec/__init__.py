"""A compact codec for per-vertex segmentations and persistence indices.

Topology preserving compression of a scalar field splits the
field into two parts: a segmentation assigning every mesh
vertex to one of a bounded number of quantization buckets, and
a persistence index recording where critical points must be
reconstructed exactly.

The segmentation is packed into 32-bit little endian words
using floor(log2(num_segments)) + 1 bits per vertex with no
padding between ids. An id that does not fit in what remains
of a word continues into the next one.

The persistence index is serialized as a table of
(vertex id, scalar value) pairs followed by a list of
(vertex id, scalar value, vertex type) constraints. On decode,
the table can be viewed sorted by vertex id or by scalar value
and the extrema of the constraint values are available.

Optional zfp and zlib adapters are provided for compressing
auxiliary residual buffers.
"""
from .codec import (
  compress, decompress,
  header, nbytes, components, component_lengths,
  check, ok,
)
from .segmentation import (
  encode as encode_segmentation,
  decode as decode_segmentation,
  write_compact_segmentation,
  read_compact_segmentation,
)
from .persistence import (
  PersistenceIndex,
  encode as encode_persistence_index,
  decode as decode_persistence_index,
  write_persistence_index,
  read_persistence_index,
  MAPPING_DTYPE, CONSTRAINT_DTYPE,
)
from .headers import (
  FormatError, IncompleteStreamError,
  UndefinedWidthError, UnsupportedWidthError,
  BackendFailure, SegmentationHeader,
)
from .lib import log2, bits_per_segment, num_words
from .util import save, load, bload, load_header, load_numpy
from . import backends
