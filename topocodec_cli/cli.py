import os
import sys

import click
import numpy as np

import topocodec

@click.command()
@click.option("-c/-d", "--compress/--decompress", default=True, is_flag=True, help="Compress from or decompress to a numpy .npy file.", show_default=True)
@click.option('-i', "--info", default=False, is_flag=True, help="Print the header for the file.", show_default=True)
@click.option('-t', "--test", default=False, is_flag=True, help="Check for file corruption and report damaged areas.", show_default=True)
@click.option('-s', "--segments", default=None, type=int, help="Number of segments. Defaults to the maximum segment id + 1.")
@click.option('-k', '--keep', default=False, is_flag=True, help="Keep the original file.", show_default=True)
@click.option('-z', 'gzip', default=False, is_flag=True, help="Apply gzip compression after encoding.", show_default=True)
@click.argument("source", nargs=-1)
def main(compress, info, test, segments, keep, gzip, source):
	"""
	Compress and decompress per-vertex segmentations to and from
	topocodec (.tcs) files and numpy (.npy) files.
	"""
	source = list(source)
	for i in range(len(source)):
		if source[i] == "-":
			source = source[:i] + [ line.strip() for line in sys.stdin.readlines() ] + source[i+1:]

	for src in source:
		if info:
			print_header(src)
			continue
		elif test:
			check_binary(src)
			continue

		if compress:
			compress_file(src, segments, gzip, keep)
		else:
			decompress_file(src, keep)

def check_binary(src):
	try:
		binary = topocodec.bload(src)
	except FileNotFoundError:
		print(f"topocodec: File \"{src}\" does not exist.")
		return

	print(f"testing {src}...")

	report = topocodec.check(binary)

	def pretty(human, key):
		if report[key] == True:
			print(f"{human} ok.")
		elif report[key] == False:
			print(f"{human} damaged (or false positive crc check).")
		elif report[key] is None:
			print(f"{human} not checked.")

	pretty("header", "header")
	pretty("segmentation", "segmentation")
	print("done.")

def print_header(src):
	try:
		head = topocodec.load_header(src, ignore_crc_check=True)
	except FileNotFoundError:
		print(f"topocodec: File \"{src}\" does not exist.")
		return
	except topocodec.FormatError as err:
		print("topocodec:", err)
		return

	print(f"Filename: {src}")
	for key,val in head.__dict__.items():
		print(f"{key}: {val}")
	try:
		print(f"bits_per_segment: {head.bits_per_segment}")
	except ValueError as err:
		print("topocodec:", err)
	print()

def decompress_file(src, keep):
	try:
		segmentation = topocodec.load(src)
	except FileNotFoundError:
		print(f"topocodec: File \"{src}\" does not exist.")
		return
	except (topocodec.FormatError, ValueError) as err:
		print(f"topocodec: {src} could not be decoded.", err)
		return

	dest = src.replace(".tcs", "").replace(".gz", "").replace(".xz", "").replace(".lzma", "")
	_, ext = os.path.splitext(dest)

	if ext != ".npy":
		dest += ".npy"

	np.save(dest, segmentation)

	try:
		stat = os.stat(dest)
		if stat.st_size == 0:
			raise ValueError("File is zero length.")
		if not keep:
			os.remove(src)
	except (FileNotFoundError, ValueError) as err:
		print(f"topocodec: Unable to write {dest}. Aborting.")
		sys.exit(1)

def compress_file(src, segments, gzip, keep):
	try:
		data = topocodec.load_numpy(src)
	except FileNotFoundError:
		print(f"topocodec: File \"{src}\" does not exist.")
		return
	except ValueError:
		print(f"topocodec: {src} is not a numpy file.")
		return

	if not np.issubdtype(data.dtype, np.integer):
		print(f"topocodec: {src} does not contain integer segment ids. Got: {data.dtype}")
		return

	orig_src = src
	src = removesuffix(src, ".lzma")
	src = removesuffix(src, ".gz")
	src = removesuffix(src, ".xz")
	src = removesuffix(src, ".npy")

	dest = f"{src}.tcs"
	if gzip:
		dest += ".gz"

	try:
		topocodec.save(data, dest, num_segments=segments)
	except ValueError as err:
		print(f"topocodec: {orig_src} could not be encoded.", err)
		return
	del data

	try:
		stat = os.stat(dest)
		if stat.st_size == 0:
			raise ValueError("File is zero length.")
		if not keep:
			os.remove(orig_src)
	except (FileNotFoundError, ValueError) as err:
		print(f"topocodec: Unable to write {dest}. Aborting.")
		sys.exit(1)

def removesuffix(x:str, suffix:str) -> str:
  if x.endswith(suffix):
    x = x[:-len(suffix)]
  return x
