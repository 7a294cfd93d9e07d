"""
Image loading and aspect ratio resolution.
"""

# Standard Library
import asyncio
import concurrent.futures
import io
import pathlib
import re
import urllib.parse
import xml.etree.ElementTree as StdElementTree

# PIP3 modules
import defusedxml.ElementTree as ElementTree
import PIL.Image
import requests

# local repo modules
import gang_sheet_builder as gsb
import gang_sheet_builder.config
import gang_sheet_builder.models


SelectionRequest = gsb.models.SelectionRequest

DEFAULT_ASPECT_RATIO = gsb.config.DEFAULT_ASPECT_RATIO
IMAGE_TIMEOUT = gsb.config.IMAGE_TIMEOUT
MAX_IMAGE_WORKERS = gsb.config.MAX_IMAGE_WORKERS

UTF8_BOM = b"\xef\xbb\xbf"
SVG_LENGTH_PATTERN = re.compile(r"^\s*([0-9]*\.?[0-9]+(?:[eE][-+]?[0-9]+)?)\s*([a-z%]*)\s*$")
SVG_UNIT_SCALE = {
	"": 1.0,
	"px": 1.0,
	"pt": 96.0 / 72.0,
	"pc": 16.0,
	"in": 96.0,
	"cm": 96.0 / 2.54,
	"mm": 96.0 / 25.4,
}


#============================================
def load_source_bytes(source: str, timeout: float = IMAGE_TIMEOUT) -> bytes:
	"""
	Read image bytes from a URL or a local path.

	Args:
		source: HTTP(S) URL, file:// URL or filesystem path.
		timeout: Network timeout in seconds.

	Returns:
		Raw bytes.
	"""
	parsed = urllib.parse.urlparse(source)
	if parsed.scheme in ("http", "https"):
		response = requests.get(source, timeout=timeout)
		response.raise_for_status()
		return response.content
	if parsed.scheme == "file":
		return pathlib.Path(urllib.parse.unquote(parsed.path)).read_bytes()
	return pathlib.Path(source).read_bytes()


#============================================
def is_svg_data(data: bytes) -> bool:
	"""
	Detect SVG documents by content.

	Args:
		data: Raw bytes.

	Returns:
		True if the bytes look like an SVG document.
	"""
	if data.startswith(UTF8_BOM):
		data = data[len(UTF8_BOM):]
	head = data[:4096].lstrip().lower()
	if not head.startswith(b"<"):
		return False
	# declarations, doctypes and comments may precede the root element
	return b"<svg" in head


#============================================
def parse_svg_length(value: str | None) -> float | None:
	"""
	Parse an SVG length attribute into CSS pixels.

	Args:
		value: Attribute text like "120", "2in" or "30mm".

	Returns:
		Length in pixels, or None for missing or relative values.
	"""
	if value is None:
		return None
	match = SVG_LENGTH_PATTERN.match(value)
	if match is None:
		return None
	unit = match.group(2).lower()
	if unit not in SVG_UNIT_SCALE:
		return None
	return float(match.group(1)) * SVG_UNIT_SCALE[unit]


#============================================
def svg_size(data: bytes) -> tuple[float, float]:
	"""
	Measure an SVG document from its viewBox or width/height.

	Args:
		data: SVG bytes.

	Returns:
		Tuple of (width, height).
	"""
	root: StdElementTree.Element = ElementTree.fromstring(data)
	view_box = root.get("viewBox")
	if view_box:
		parts = view_box.replace(",", " ").split()
		if len(parts) == 4:
			return (float(parts[2]), float(parts[3]))
	width = parse_svg_length(root.get("width"))
	height = parse_svg_length(root.get("height"))
	if width is None or height is None:
		raise ValueError("SVG has no usable viewBox or width/height")
	return (width, height)


#============================================
def image_size(data: bytes) -> tuple[float, float]:
	"""
	Measure raster or SVG image bytes.

	Args:
		data: Raw image bytes.

	Returns:
		Tuple of (width, height).
	"""
	if is_svg_data(data):
		return svg_size(data)
	with PIL.Image.open(io.BytesIO(data)) as image:
		return (float(image.width), float(image.height))


#============================================
def read_aspect_ratio(source: str, timeout: float = IMAGE_TIMEOUT) -> float:
	"""
	Load an image and compute width / height.

	Args:
		source: Image URL or path.
		timeout: Network timeout in seconds.

	Returns:
		Aspect ratio.
	"""
	data = load_source_bytes(source, timeout)
	width, height = image_size(data)
	if width <= 0 or height <= 0:
		raise ValueError(f"Degenerate image size {width}x{height}")
	return width / height


#============================================
async def resolve_aspect_ratio(
	source: str,
	timeout: float = IMAGE_TIMEOUT,
	verbose: bool = False,
	executor: concurrent.futures.Executor | None = None,
) -> float:
	"""
	Resolve an image aspect ratio, falling back to the default on failure.

	Args:
		source: Image URL or path.
		timeout: Overall timeout in seconds.
		verbose: Print a line when the fallback is used.
		executor: Thread pool for the blocking read; None uses the loop default.

	Returns:
		Aspect ratio (width / height).
	"""
	loop = asyncio.get_running_loop()
	try:
		return await asyncio.wait_for(
			loop.run_in_executor(executor, read_aspect_ratio, source, timeout),
			timeout,
		)
	except (
		asyncio.TimeoutError,
		requests.RequestException,
		OSError,
		PIL.UnidentifiedImageError,
		PIL.Image.DecompressionBombError,
		StdElementTree.ParseError,
		ValueError,
	) as error:
		if verbose:
			print(f"Aspect ratio fallback for {source}: {error}")
		return DEFAULT_ASPECT_RATIO


#============================================
async def resolve_aspect_ratios(
	requests_list: list[SelectionRequest],
	timeout: float = IMAGE_TIMEOUT,
	verbose: bool = False,
) -> dict[str, float]:
	"""
	Resolve ratios for every distinct logo in a calculation run.

	Each logo id is loaded once, all loads run concurrently and the call
	returns only after every one has finished or fallen back.

	Reads run on a pool owned by this call. The pool is shut down without
	waiting, so a read that outlives its timeout keeps running in the
	background instead of holding up the caller or the event loop shutdown.

	Args:
		requests_list: Selection requests.
		timeout: Per-image timeout in seconds.
		verbose: Print fallback lines.

	Returns:
		Mapping of logo id to aspect ratio.
	"""
	sources: dict[str, str] = {}
	for request in requests_list:
		if request.logo.logo_id not in sources:
			sources[request.logo.logo_id] = request.logo.image_source
	logo_ids = list(sources)
	if not logo_ids:
		return {}
	executor = concurrent.futures.ThreadPoolExecutor(
		max_workers=min(MAX_IMAGE_WORKERS, len(logo_ids)),
		thread_name_prefix="aspect-ratio",
	)
	try:
		ratios = await asyncio.gather(
			*(
				resolve_aspect_ratio(sources[logo_id], timeout, verbose, executor)
				for logo_id in logo_ids
			)
		)
	finally:
		executor.shutdown(wait=False, cancel_futures=True)
	return dict(zip(logo_ids, ratios))
