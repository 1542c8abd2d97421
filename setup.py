import setuptools

setuptools.setup(
  name="topocodec",
  version="1.0.0",
  description="Compact codecs for per-vertex segmentations and persistence indices.",
  python_requires=">=3.8",
  packages=setuptools.find_packages(include=["topocodec", "topocodec_cli"]),
  install_requires=[
    "numpy",
    "click",
    "google-crc32c",
  ],
  extras_require={
    "zfp": [
      "zfpy",
    ],
    "test": [
      "pytest",
    ],
  },
  entry_points={
    "console_scripts": [
      "topocodec=topocodec_cli:main"
    ],
  },
)
