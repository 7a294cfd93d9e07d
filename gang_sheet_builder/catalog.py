"""
Logo catalog loading and paged search.
"""

# Standard Library
import dataclasses
import json
import math
import pathlib

# local repo modules
import gang_sheet_builder as gsb
import gang_sheet_builder.config
import gang_sheet_builder.models


LogoRef = gsb.models.LogoRef
SelectionRequest = gsb.models.SelectionRequest
SheetSize = gsb.config.SheetSize

LOGOS_PER_PAGE = gsb.config.LOGOS_PER_PAGE
WIDTH_PRESETS = gsb.config.WIDTH_PRESETS


class CatalogError(RuntimeError):
	"""
	Raised when the catalog or an order cannot be loaded. Callers may retry.
	"""


@dataclasses.dataclass
class CatalogPage:
	records: list[LogoRef]
	total_count: int
	page: int
	total_pages: int


#============================================
def parse_logo_record(record: dict) -> LogoRef:
	"""
	Convert one catalog JSON record into a LogoRef.

	Args:
		record: Dict with description, logo_id, png_url, account_name, svg_link.

	Returns:
		LogoRef.
	"""
	logo_id = record.get("logo_id", record.get("id"))
	raster_url = record.get("png_url", record.get("raster_url"))
	if logo_id is None or not raster_url:
		raise CatalogError(f"Catalog record missing logo_id or png_url: {record!r}")
	vector_url = record.get("svg_link", record.get("vector_url")) or None
	return LogoRef(
		logo_id=str(logo_id),
		description=record.get("description") or "",
		account_name=record.get("account_name") or "",
		raster_url=raster_url,
		vector_url=vector_url,
	)


#============================================
def load_catalog(path: pathlib.Path) -> list[LogoRef]:
	"""
	Load catalog records from a JSON file.

	Relative image paths are resolved against the catalog's directory.

	Args:
		path: JSON file holding a list of records.

	Returns:
		List of LogoRef entries.
	"""
	try:
		text = path.read_text(encoding="utf-8")
		data = json.loads(text)
	except (OSError, json.JSONDecodeError) as error:
		raise CatalogError(f"Failed to load catalog {path}: {error}") from error
	if isinstance(data, dict):
		data = data.get("logos", [])
	if not isinstance(data, list):
		raise CatalogError(f"Catalog {path} must hold a list of logos")
	records = []
	for entry in data:
		logo = parse_logo_record(entry)
		logo = dataclasses.replace(
			logo,
			raster_url=resolve_relative(logo.raster_url, path.parent),
			vector_url=resolve_relative(logo.vector_url, path.parent) if logo.vector_url else None,
		)
		records.append(logo)
	return records


#============================================
def resolve_relative(source: str, base_dir: pathlib.Path) -> str:
	if "://" in source:
		return source
	candidate = pathlib.Path(source)
	if candidate.is_absolute():
		return source
	return str(base_dir / candidate)


#============================================
def matches_query(logo: LogoRef, query: str) -> bool:
	"""
	Check a logo against a search query.

	Args:
		logo: Catalog record.
		query: Non-empty search text.

	Returns:
		True when description or account name contains the query, or the id
		does for numeric queries.
	"""
	needle = query.lower()
	if needle in logo.description.lower():
		return True
	if needle in logo.account_name.lower():
		return True
	if is_numeric_query(query) and needle in logo.logo_id.lower():
		return True
	return False


#============================================
def is_numeric_query(query: str) -> bool:
	try:
		float(query)
	except ValueError:
		return False
	return True


#============================================
def sort_key(logo: LogoRef) -> tuple:
	if logo.logo_id.isdigit():
		return (0, int(logo.logo_id), logo.logo_id)
	return (1, 0, logo.logo_id)


#============================================
def search_catalog(
	records: list[LogoRef],
	query: str = "",
	page: int = 1,
	per_page: int = LOGOS_PER_PAGE,
) -> CatalogPage:
	"""
	Return one page of catalog search results ordered by logo id.

	Args:
		records: Catalog records.
		query: Search text; empty returns everything.
		page: One-based page number, clamped to at least 1.
		per_page: Records per page.

	Returns:
		CatalogPage.
	"""
	query = query.strip()
	matched = [logo for logo in records if not query or matches_query(logo, query)]
	matched.sort(key=sort_key)
	page = max(1, page)
	start = (page - 1) * per_page
	total_pages = math.ceil(len(matched) / per_page) if per_page > 0 else 0
	return CatalogPage(
		records=matched[start:start + per_page],
		total_count=len(matched),
		page=page,
		total_pages=total_pages,
	)


#============================================
def find_logo(records: list[LogoRef], logo_id: str) -> LogoRef:
	for logo in records:
		if logo.logo_id == str(logo_id):
			return logo
	raise CatalogError(f"Unknown logo id: {logo_id}")


#============================================
def parse_width(value: float | str) -> float:
	"""
	Parse a width value or a named preset such as "Shirt".

	Args:
		value: Width in inches or preset name.

	Returns:
		Width in inches.
	"""
	if isinstance(value, str):
		for name, width in WIDTH_PRESETS.items():
			if name.lower() == value.strip().lower():
				return width
		return float(value)
	return float(value)


#============================================
def load_order(
	path: pathlib.Path,
	records: list[LogoRef],
) -> tuple[list[SelectionRequest], SheetSize | None]:
	"""
	Load an order file of logo selections.

	The file holds either a list of selections or a dict with "logos" and
	an optional "sheet_size". Each selection has logo_id, width (inches or
	a preset name), quantity, and optional notes and rotated.

	Args:
		path: Order JSON path.
		records: Catalog records used to resolve logo ids.

	Returns:
		Tuple of (requests, pinned sheet size or None).
	"""
	try:
		data = json.loads(path.read_text(encoding="utf-8"))
	except (OSError, json.JSONDecodeError) as error:
		raise CatalogError(f"Failed to load order {path}: {error}") from error
	sheet_size = None
	if isinstance(data, dict):
		if data.get("sheet_size"):
			try:
				sheet_size = SheetSize.from_label(data["sheet_size"])
			except ValueError as error:
				raise CatalogError(f"Invalid sheet_size in {path}: {error}") from error
		data = data.get("logos", [])
	if not isinstance(data, list):
		raise CatalogError(f"Order {path} must hold a list of logo selections")
	requests_list = []
	for number, entry in enumerate(data, start=1):
		try:
			logo = find_logo(records, entry["logo_id"])
			requests_list.append(
				SelectionRequest(
					logo=logo,
					width=parse_width(entry["width"]),
					quantity=int(entry.get("quantity", 1)),
					note=entry.get("notes", entry.get("note")) or "",
					rotated=bool(entry.get("rotated", False)),
				)
			)
		except (KeyError, TypeError, ValueError, AttributeError) as error:
			raise CatalogError(f"Invalid order entry {number} in {path}: {error!r}") from error
	return requests_list, sheet_size
