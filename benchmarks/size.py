import topocodec
from topocodec import backends

import numpy as np

def run(segmentation, num_segments):
  tcs_binary = topocodec.compress(segmentation, num_segments=num_segments)
  raw_binary = segmentation.astype(np.int32).tobytes()

  for method in ['','gz']:
    if method == '':
      fn = lambda x: x
      ext = ''
    elif method == 'gz':
      fn = backends.compress_with_zlib
      ext = '.gz'

    ctcs_binary = fn(tcs_binary)
    craw_binary = fn(raw_binary)

    print(f"""
      tcs{ext}:      {len(ctcs_binary): 9}   ({len(ctcs_binary)/len(raw_binary)*100:.2f}%)
      raw{ext}:      {len(craw_binary): 9}   ({len(craw_binary)/len(raw_binary)*100:.2f}%)""", flush=True)

N = 2 ** 22

for num_segments in [ 2, 3, 5, 17, 255, 256, 4096 ]:
  print(f"RANDOM SEGMENTATION [0,{num_segments}) ({topocodec.bits_per_segment(num_segments)} bits)")
  segmentation = np.random.randint(0, num_segments, size=(N,), dtype=np.int32)
  run(segmentation, num_segments)

print("QUANTIZED SMOOTH FIELD (16 segments)")
x = np.linspace(0, 20 * np.pi, N)
field = (np.sin(x) + 1) / 2
segmentation = np.minimum((field * 16).astype(np.int32), 15)
run(segmentation, 16)

print("SOLID ZEROS")
run(np.zeros((N,), dtype=np.int32), 1)
