"""
Shelf packing of logo instances onto fixed-size sheets.
"""

# Standard Library
import asyncio
import dataclasses
import math

# local repo modules
import gang_sheet_builder as gsb
import gang_sheet_builder.config
import gang_sheet_builder.imaging
import gang_sheet_builder.models


LogoInstance = gsb.models.LogoInstance
Placement = gsb.models.Placement
SelectionRequest = gsb.models.SelectionRequest
Sheet = gsb.models.Sheet
SheetSize = gsb.config.SheetSize

SPACING = gsb.config.SPACING
MARGIN = gsb.config.MARGIN
DEFAULT_ASPECT_RATIO = gsb.config.DEFAULT_ASPECT_RATIO
SHEET_SIZES = gsb.config.SHEET_SIZES
LARGEST_SHEET_SIZE = gsb.config.LARGEST_SHEET_SIZE


@dataclasses.dataclass
class PackResult:
	size: SheetSize
	placements: list[Placement]
	count_placed: int
	cost_per_unit: float
	placed_instances: list[LogoInstance]


#============================================
def pack_sheet(instances: list[LogoInstance], size: SheetSize) -> PackResult:
	"""
	Fill one sheet row by row, tallest unrotated height first.

	Ordering uses the instance height before any rotation swap; rows are
	then measured with the effective (rotated) footprint.

	Rows are filled greedily and stop at the first instance that does not
	fit. A row that would overflow the sheet bottom is discarded and ends
	the sheet; its instances stay unplaced.

	Args:
		instances: Candidate instances.
		size: Sheet size to fill.

	Returns:
		PackResult for this sheet size.
	"""
	limit_x = size.width - MARGIN
	limit_y = size.height - MARGIN
	remaining = sorted(instances, key=lambda item: item.height, reverse=True)
	placements: list[Placement] = []
	placed: list[LogoInstance] = []

	current_y = MARGIN
	while remaining:
		current_x = MARGIN
		row_height = 0.0
		row: list[LogoInstance] = []
		for instance in remaining:
			if current_x + instance.effective_width > limit_x:
				break
			row.append(instance)
			current_x += instance.effective_width + SPACING
			row_height = max(row_height, instance.effective_height)

		if not row:
			break
		if current_y + row_height > limit_y:
			break

		current_x = MARGIN
		for instance in row:
			placements.append(
				Placement(
					request=instance.request,
					x=current_x,
					y=current_y,
					width=instance.effective_width,
					height=instance.effective_height,
					rotated=instance.rotated,
				)
			)
			current_x += instance.effective_width + SPACING
		placed.extend(row)
		current_y += row_height + SPACING
		remaining = remaining[len(row):]

	count_placed = len(placed)
	cost_per_unit = math.inf
	if count_placed > 0:
		cost_per_unit = size.price / count_placed
	return PackResult(
		size=size,
		placements=placements,
		count_placed=count_placed,
		cost_per_unit=cost_per_unit,
		placed_instances=placed,
	)


#============================================
def choose_best_fit(instances: list[LogoInstance]) -> PackResult | None:
	"""
	Try every sheet size and keep the lowest cost per placed instance.

	Args:
		instances: Remaining instances.

	Returns:
		Best PackResult, or None when no size places anything.
	"""
	best: PackResult | None = None
	for size in SHEET_SIZES:
		result = pack_sheet(instances, size)
		if result.count_placed == 0:
			continue
		if best is None or result.cost_per_unit < best.cost_per_unit:
			best = result
	return best


#============================================
def force_place(instance: LogoInstance, size: SheetSize) -> Sheet:
	"""
	Put a single instance alone on a sheet, ignoring fit checks.

	Args:
		instance: Instance that fits no sheet.
		size: Sheet size to use.

	Returns:
		Sheet holding only this instance.
	"""
	placement = Placement(
		request=instance.request,
		x=MARGIN,
		y=MARGIN,
		width=instance.effective_width,
		height=instance.effective_height,
		rotated=instance.rotated,
	)
	return Sheet(size=size, placements=(placement,))


#============================================
def pack_group(
	instances: list[LogoInstance],
	preferred_size: SheetSize | None = None,
	verbose: bool = False,
) -> list[Sheet]:
	"""
	Pack one note group onto as many sheets as it needs.

	Args:
		instances: Instances sharing a note.
		preferred_size: Pinned sheet size, or None to pick by cost.
		verbose: Print a line for each forced placement.

	Returns:
		Sheets in generation order.
	"""
	sheets: list[Sheet] = []
	remaining = list(instances)
	while remaining:
		if preferred_size is None:
			result = choose_best_fit(remaining)
		else:
			result = pack_sheet(remaining, preferred_size)
			if result.count_placed == 0:
				result = None

		if result is None:
			forced_size = preferred_size or LARGEST_SHEET_SIZE
			instance = remaining.pop(0)
			if verbose:
				print(
					f"Forced placement: {instance.instance_id} "
					f"({instance.effective_width:.2f}x{instance.effective_height:.2f} in) "
					f"on {forced_size.value}"
				)
			sheets.append(force_place(instance, forced_size))
			continue

		sheets.append(Sheet(size=result.size, placements=tuple(result.placements)))
		placed_ids = {id(instance) for instance in result.placed_instances}
		remaining = [instance for instance in remaining if id(instance) not in placed_ids]
	return sheets


#============================================
def expand_requests(
	requests_list: list[SelectionRequest],
	ratios: dict[str, float],
) -> list[LogoInstance]:
	"""
	Turn each request into one instance per requested copy.

	Args:
		requests_list: Selection requests.
		ratios: Aspect ratio by logo id.

	Returns:
		Instances in request order.
	"""
	instances: list[LogoInstance] = []
	for request_index, request in enumerate(requests_list):
		ratio = ratios.get(request.logo.logo_id) or DEFAULT_ASPECT_RATIO
		height = request.width / ratio
		for copy_index in range(request.quantity):
			instances.append(
				LogoInstance(
					request=request,
					width=request.width,
					height=height,
					instance_id=f"{request.logo.logo_id}-{request_index}-{copy_index}",
				)
			)
	return instances


#============================================
def group_by_note(instances: list[LogoInstance]) -> dict[str, list[LogoInstance]]:
	"""
	Bucket instances by their note, keeping first-seen note order.

	Args:
		instances: Instances to bucket.

	Returns:
		Mapping of note to instances.
	"""
	groups: dict[str, list[LogoInstance]] = {}
	for instance in instances:
		note = instance.request.note or ""
		groups.setdefault(note, []).append(instance)
	return groups


#============================================
def pack_requests(
	requests_list: list[SelectionRequest],
	ratios: dict[str, float],
	preferred_size: SheetSize | None = None,
	verbose: bool = False,
) -> list[Sheet]:
	"""
	Pack requests with known aspect ratios into sheets.

	Args:
		requests_list: Selection requests.
		ratios: Aspect ratio by logo id.
		preferred_size: Pinned sheet size, or None to pick by cost.
		verbose: Print per-group progress.

	Returns:
		Sheets ordered by note first-seen order, then generation order.
	"""
	instances = expand_requests(requests_list, ratios)
	sheets: list[Sheet] = []
	for note, group in group_by_note(instances).items():
		group_sheets = pack_group(group, preferred_size, verbose)
		if verbose:
			label = note or "(no note)"
			print(f"Group {label}: {len(group)} logos on {len(group_sheets)} sheets")
		sheets.extend(group_sheets)
	return sheets


#============================================
async def calculate_sheets(
	requests_list: list[SelectionRequest],
	preferred_size: SheetSize | None = None,
	verbose: bool = False,
) -> list[Sheet]:
	"""
	Resolve aspect ratios, then pack every request into sheets.

	Args:
		requests_list: Selection requests.
		preferred_size: Pinned sheet size, or None to pick by cost.
		verbose: Print progress lines.

	Returns:
		Generated sheets.
	"""
	if not requests_list:
		return []
	ratios = await gsb.imaging.resolve_aspect_ratios(requests_list, verbose=verbose)
	return pack_requests(requests_list, ratios, preferred_size, verbose)


#============================================
def build_sheets(
	requests_list: list[SelectionRequest],
	preferred_size: SheetSize | None = None,
	verbose: bool = False,
) -> list[Sheet]:
	"""
	Synchronous wrapper around calculate_sheets.

	Args:
		requests_list: Selection requests.
		preferred_size: Pinned sheet size, or None to pick by cost.
		verbose: Print progress lines.

	Returns:
		Generated sheets.
	"""
	return asyncio.run(calculate_sheets(requests_list, preferred_size, verbose))
