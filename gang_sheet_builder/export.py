"""
Raster and PDF export of finished sheets.
"""

# Standard Library
import io
import json
import pathlib

# PIP3 modules
import PIL.Image
import PIL.ImageDraw
import PIL.ImageFont
import pypdf
import reportlab.lib.utils
import reportlab.pdfgen.canvas
import requests

# local repo modules
import gang_sheet_builder as gsb
import gang_sheet_builder.config
import gang_sheet_builder.dedup
import gang_sheet_builder.imaging
import gang_sheet_builder.models


ExportConfig = gsb.config.ExportConfig
GroupedSheet = gsb.models.GroupedSheet
LogoRef = gsb.models.LogoRef
Placement = gsb.models.Placement
SelectionRequest = gsb.models.SelectionRequest
Sheet = gsb.models.Sheet

DPI = gsb.config.DPI
FOOTER_HEIGHT = gsb.config.FOOTER_HEIGHT
THUMBNAIL_SIZE = gsb.config.THUMBNAIL_SIZE
FOOTER_PADDING = gsb.config.FOOTER_PADDING
FOOTER_FONT_SIZE = gsb.config.FOOTER_FONT_SIZE
FOOTER_BACKGROUND = gsb.config.FOOTER_BACKGROUND
FOOTER_BORDER = gsb.config.FOOTER_BORDER
FOOTER_TEXT_COLOR = gsb.config.FOOTER_TEXT_COLOR
FOOTER_MUTED_COLOR = gsb.config.FOOTER_MUTED_COLOR
PROGRESS_BAR_WIDTH = gsb.config.PROGRESS_BAR_WIDTH

ImageCache = dict[str, PIL.Image.Image | None]


#============================================
def default_export_config() -> ExportConfig:
	return ExportConfig(
		dpi=DPI,
		include_footer=True,
		transparent=True,
		write_pdf=False,
		combined_pdf=False,
	)


#============================================
def print_progress(prefix: str, current: int, total: int) -> None:
	"""
	Print a simple progress bar.

	Args:
		prefix: Label text.
		current: Current count.
		total: Total count.
	"""
	if total <= 0:
		return
	percent = int(round((current / total) * 100.0))
	filled = int(round(PROGRESS_BAR_WIDTH * percent / 100.0))
	bar = "#" * filled + "-" * (PROGRESS_BAR_WIDTH - filled)
	print(f"{prefix} [{bar}] {current}/{total} ({percent}%)", end="\r")


#============================================
def sanitize_token(value: str) -> str:
	"""
	Sanitize a string for filenames.

	Args:
		value: Input string.

	Returns:
		Sanitized string.
	"""
	result: list[str] = []
	for char in value:
		if char.isalnum():
			result.append(char)
		else:
			result.append("_")
	sanitized = "".join(result).strip("_")
	if not sanitized:
		return "sheet"
	return sanitized


#============================================
def sheet_png_filename(sheet: Sheet, quantity: int = 1) -> str:
	"""
	Build the download name for a sheet image.

	Args:
		sheet: Sheet being exported.
		quantity: How many identical copies the sheet stands for.

	Returns:
		Filename like "Small.png" or "Extra Large-QTY3.png".
	"""
	stem = sheet.size.value
	if quantity > 1:
		return f"{stem}-QTY{quantity}.png"
	return f"{stem}.png"


#============================================
def sheet_pdf_filename(sheet: Sheet, index: int) -> str:
	stem = sanitize_token(sheet.size.value).lower()
	return f"gang-sheet-{index + 1}-{stem}.pdf"


#============================================
def load_logo_image(logo: LogoRef, cache: ImageCache | None = None) -> PIL.Image.Image | None:
	"""
	Load a logo's artwork as an RGBA image.

	The vector source is tried first; SVG data cannot be rasterized here,
	so the raster source is used whenever the vector source is SVG or fails.

	Args:
		logo: Catalog record.
		cache: Optional cache keyed by logo id.

	Returns:
		RGBA image, or None when no source can be decoded.
	"""
	if cache is not None and logo.logo_id in cache:
		return cache[logo.logo_id]
	image = None
	sources = [source for source in (logo.vector_url, logo.raster_url) if source]
	for source in sources:
		try:
			data = gsb.imaging.load_source_bytes(source)
			if gsb.imaging.is_svg_data(data):
				continue
			with PIL.Image.open(io.BytesIO(data)) as opened:
				image = opened.convert("RGBA")
			break
		except (
			requests.RequestException,
			OSError,
			PIL.UnidentifiedImageError,
			PIL.Image.DecompressionBombError,
		) as error:
			print(f"Image load failed for logo {logo.logo_id} ({source}): {error}")
	if image is None:
		print(f"No drawable image for logo {logo.logo_id}; leaving its slots empty")
	if cache is not None:
		cache[logo.logo_id] = image
	return image


#============================================
def fit_contain(image: PIL.Image.Image, box_width: int, box_height: int) -> PIL.Image.Image:
	"""
	Scale an image to fit a box, centered on a transparent background.

	Args:
		image: Source RGBA image.
		box_width: Box width in pixels.
		box_height: Box height in pixels.

	Returns:
		RGBA image of exactly box_width x box_height.
	"""
	box_width = max(1, box_width)
	box_height = max(1, box_height)
	scale = min(box_width / image.width, box_height / image.height)
	width = max(1, int(round(image.width * scale)))
	height = max(1, int(round(image.height * scale)))
	resized = image.resize((width, height), PIL.Image.Resampling.LANCZOS)
	boxed = PIL.Image.new("RGBA", (box_width, box_height), (0, 0, 0, 0))
	boxed.paste(resized, ((box_width - width) // 2, (box_height - height) // 2), resized)
	return boxed


#============================================
def placement_angle(placement: Placement, rotations: dict[str, int] | None) -> int:
	"""
	Total clockwise rotation to apply to a placement's artwork.

	Args:
		placement: Placement being drawn.
		rotations: Editor rotation overlay keyed by placement id.

	Returns:
		Angle in degrees, 0-270.
	"""
	angle = 90 if placement.rotated else 0
	if rotations:
		angle += rotations.get(placement.placement_id, 0)
	return angle % 360


#============================================
def compose_placement_image(
	placement: Placement,
	image: PIL.Image.Image,
	angle: int,
	dpi: int,
) -> PIL.Image.Image:
	"""
	Fit and rotate artwork so it fills the placement's footprint.

	Args:
		placement: Placement being drawn.
		image: Logo artwork.
		angle: Clockwise rotation in degrees.
		dpi: Output resolution.

	Returns:
		RGBA image covering the placement's width and height.
	"""
	box_width = placement.width
	box_height = placement.height
	if angle % 180 != 0:
		box_width, box_height = box_height, box_width
	fitted = fit_contain(
		image,
		gsb.config.inches_to_pixels(box_width, dpi),
		gsb.config.inches_to_pixels(box_height, dpi),
	)
	if angle:
		fitted = fitted.rotate(-angle, expand=True)
	return fitted


#============================================
def unique_requests(sheet: Sheet) -> list[SelectionRequest]:
	seen: dict[str, SelectionRequest] = {}
	for placement in sheet.placements:
		seen[placement.logo_id] = placement.request
	return list(seen.values())


#============================================
def draw_footer(
	canvas: PIL.Image.Image,
	sheet: Sheet,
	top: int,
	config: ExportConfig,
	cache: ImageCache,
) -> None:
	"""
	Draw the legend strip listing every logo on the sheet.

	Args:
		canvas: Output image.
		sheet: Sheet being exported.
		top: Pixel row where the footer starts.
		config: Export configuration.
		cache: Image cache.
	"""
	dpi = config.dpi
	draw = PIL.ImageDraw.Draw(canvas)
	draw.rectangle((0, top, canvas.width, canvas.height), fill=FOOTER_BACKGROUND)
	draw.line((0, top, canvas.width, top), fill=FOOTER_BORDER, width=2)
	font_size = max(8, int(round(FOOTER_FONT_SIZE * dpi / DPI)))
	font = PIL.ImageFont.load_default(size=font_size)

	padding = gsb.config.inches_to_pixels(FOOTER_PADDING, dpi)
	thumb_inches = min(THUMBNAIL_SIZE, FOOTER_HEIGHT - 2.0 * FOOTER_PADDING)
	thumb_size = gsb.config.inches_to_pixels(thumb_inches, dpi)
	cursor_x = padding
	thumb_top = top + padding
	for request in unique_requests(sheet):
		if cursor_x >= canvas.width:
			break
		image = load_logo_image(request.logo, cache)
		if image is not None:
			thumbnail = fit_contain(image, thumb_size, thumb_size)
			canvas.alpha_composite(thumbnail, (cursor_x, thumb_top))
		cursor_x += thumb_size + padding

		parts = []
		if request.note:
			parts.append((f"- {request.note}", FOOTER_MUTED_COLOR))
		parts.append((request.logo.account_name, FOOTER_TEXT_COLOR))
		parts.append((f"(ID: {request.logo.logo_id})", FOOTER_MUTED_COLOR))
		text_y = thumb_top + (thumb_size - font_size) // 2
		for text, color in parts:
			if not text:
				continue
			draw.text((cursor_x, text_y), text, fill=color, font=font)
			cursor_x += int(draw.textlength(text, font=font)) + padding
		cursor_x += padding


#============================================
def render_sheet_image(
	sheet: Sheet,
	rotations: dict[str, int] | None = None,
	config: ExportConfig | None = None,
	cache: ImageCache | None = None,
) -> PIL.Image.Image:
	"""
	Composite a sheet into an in-memory image.

	Args:
		sheet: Sheet to render.
		rotations: Editor rotation overlay keyed by placement id.
		config: Export configuration.
		cache: Image cache shared across sheets.

	Returns:
		RGBA image at the configured resolution.
	"""
	if config is None:
		config = default_export_config()
	if cache is None:
		cache = {}
	dpi = config.dpi
	sheet_width = gsb.config.inches_to_pixels(sheet.width, dpi)
	sheet_height = gsb.config.inches_to_pixels(sheet.height, dpi)
	footer_height = gsb.config.inches_to_pixels(FOOTER_HEIGHT, dpi) if config.include_footer else 0
	background = (0, 0, 0, 0) if config.transparent else (255, 255, 255, 255)
	canvas = PIL.Image.new("RGBA", (sheet_width, sheet_height + footer_height), background)

	for placement in sheet.placements:
		image = load_logo_image(placement.request.logo, cache)
		if image is None:
			continue
		composed = compose_placement_image(placement, image, placement_angle(placement, rotations), dpi)
		center_x, center_y = placement.center
		left = int(round(center_x * dpi - composed.width / 2.0))
		top = int(round(center_y * dpi - composed.height / 2.0))
		# clip to the sheet area; alpha_composite rejects negative offsets
		x0 = max(0, left)
		y0 = max(0, top)
		x1 = min(sheet_width, left + composed.width)
		y1 = min(sheet_height, top + composed.height)
		if x1 <= x0 or y1 <= y0:
			continue
		region = composed.crop((x0 - left, y0 - top, x1 - left, y1 - top))
		canvas.alpha_composite(region, (x0, y0))

	if config.include_footer:
		draw_footer(canvas, sheet, sheet_height, config, cache)
	return canvas


#============================================
def render_sheet_png(
	sheet: Sheet,
	output_path: pathlib.Path,
	rotations: dict[str, int] | None = None,
	config: ExportConfig | None = None,
	cache: ImageCache | None = None,
) -> pathlib.Path:
	"""
	Render a sheet to a PNG file.

	Args:
		sheet: Sheet to render.
		output_path: Output PNG path.
		rotations: Editor rotation overlay keyed by placement id.
		config: Export configuration.
		cache: Image cache shared across sheets.

	Returns:
		The written path.
	"""
	if config is None:
		config = default_export_config()
	image = render_sheet_image(sheet, rotations, config, cache)
	output_path.parent.mkdir(parents=True, exist_ok=True)
	image.save(str(output_path), format="PNG", dpi=(config.dpi, config.dpi))
	return output_path


#============================================
def draw_sheet_page(
	pdf: reportlab.pdfgen.canvas.Canvas,
	sheet: Sheet,
	rotations: dict[str, int] | None,
	dpi: int,
	cache: ImageCache,
) -> None:
	"""
	Draw every placement of a sheet onto the current PDF page.

	Args:
		pdf: ReportLab canvas sized to the sheet.
		sheet: Sheet to draw.
		rotations: Editor rotation overlay keyed by placement id.
		dpi: Resolution of the embedded artwork.
		cache: Image cache.
	"""
	page_height = gsb.config.inches_to_points(sheet.height)
	for placement in sheet.placements:
		image = load_logo_image(placement.request.logo, cache)
		if image is None:
			continue
		composed = compose_placement_image(placement, image, placement_angle(placement, rotations), dpi)
		width_in = composed.width / dpi
		height_in = composed.height / dpi
		center_x, center_y = placement.center
		left = center_x - width_in / 2.0
		top = center_y - height_in / 2.0
		pdf.drawImage(
			reportlab.lib.utils.ImageReader(composed),
			gsb.config.inches_to_points(left),
			page_height - gsb.config.inches_to_points(top + height_in),
			width=gsb.config.inches_to_points(width_in),
			height=gsb.config.inches_to_points(height_in),
			mask="auto",
		)


#============================================
def render_sheet_pdf(
	sheet: Sheet,
	output: pathlib.Path | io.BytesIO,
	rotations: dict[str, int] | None = None,
	config: ExportConfig | None = None,
	cache: ImageCache | None = None,
) -> None:
	"""
	Write one sheet as a single exact-size PDF page.

	Args:
		sheet: Sheet to draw.
		output: Output path or buffer.
		rotations: Editor rotation overlay keyed by placement id.
		config: Export configuration.
		cache: Image cache.
	"""
	if config is None:
		config = default_export_config()
	if cache is None:
		cache = {}
	page_size = (
		gsb.config.inches_to_points(sheet.width),
		gsb.config.inches_to_points(sheet.height),
	)
	target = output
	if isinstance(output, pathlib.Path):
		output.parent.mkdir(parents=True, exist_ok=True)
		target = str(output)
	pdf = reportlab.pdfgen.canvas.Canvas(target, pagesize=page_size)
	pdf.setTitle(f"{sheet.size.value} gang sheet")
	draw_sheet_page(pdf, sheet, rotations, config.dpi, cache)
	pdf.showPage()
	pdf.save()


#============================================
def write_sheets_pdf(
	sheets: list[Sheet],
	output_path: pathlib.Path,
	rotations_by_sheet: list[dict[str, int] | None] | None = None,
	config: ExportConfig | None = None,
	cache: ImageCache | None = None,
	verbose: bool = False,
) -> int:
	"""
	Combine several sheets into one PDF, one page per sheet.

	Args:
		sheets: Sheets in print order.
		output_path: Output PDF path.
		rotations_by_sheet: Optional overlay per sheet, parallel to sheets.
		config: Export configuration.
		cache: Image cache.
		verbose: Print a progress bar.

	Returns:
		Number of pages written.
	"""
	if cache is None:
		cache = {}
	writer = pypdf.PdfWriter()
	total = len(sheets)
	for index, sheet in enumerate(sheets):
		rotations = None
		if rotations_by_sheet is not None and index < len(rotations_by_sheet):
			rotations = rotations_by_sheet[index]
		buffer = io.BytesIO()
		render_sheet_pdf(sheet, buffer, rotations, config, cache)
		buffer.seek(0)
		reader = pypdf.PdfReader(buffer)
		writer.add_page(reader.pages[0])
		if verbose:
			print_progress("PDF pages", index + 1, total)
	if verbose and total > 0:
		print()
	output_path.parent.mkdir(parents=True, exist_ok=True)
	writer.write(str(output_path))
	return total


#============================================
def write_manifest(
	manifest_path: pathlib.Path,
	grouped: list[GroupedSheet],
	outputs: list[str],
	preferred_size: str | None,
) -> None:
	"""
	Write a manifest JSON file describing a build.

	Args:
		manifest_path: Output path.
		grouped: Grouped sheets.
		outputs: Written file paths.
		preferred_size: Pinned size label, if any.
	"""
	sheets_data = []
	for entry in grouped:
		sheets_data.append(
			{
				"index": entry.index,
				"size": entry.sheet.size.value,
				"quantity": entry.quantity,
				"price": entry.sheet.price,
				"width": entry.sheet.width,
				"height": entry.sheet.height,
				"placements": [
					{
						"logo_id": placement.logo_id,
						"x": round(placement.x, 4),
						"y": round(placement.y, 4),
						"width": round(placement.width, 4),
						"height": round(placement.height, 4),
						"rotated": placement.rotated,
						"note": placement.request.note,
					}
					for placement in entry.sheet.placements
				],
			}
		)
	data = {
		"preferred_size": preferred_size,
		"total_sheets": sum(entry.quantity for entry in grouped),
		"unique_sheets": len(grouped),
		"total_cost": round(gsb.dedup.total_cost(grouped), 2),
		"outputs": outputs,
		"sheets": sheets_data,
	}
	manifest_path.parent.mkdir(parents=True, exist_ok=True)
	with manifest_path.open("w", encoding="utf-8") as handle:
		json.dump(data, handle, indent=2, sort_keys=True)
