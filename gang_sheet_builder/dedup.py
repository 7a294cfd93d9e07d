"""
Collapse identical generated sheets into counted groups.
"""

# local repo modules
import gang_sheet_builder as gsb
import gang_sheet_builder.models


GroupedSheet = gsb.models.GroupedSheet
Sheet = gsb.models.Sheet


#============================================
def sheet_key(sheet: Sheet) -> tuple:
	"""
	Build an order-sensitive structural key for a sheet.

	Args:
		sheet: Sheet to key.

	Returns:
		Hashable key of size and placement geometry.
	"""
	placements = tuple(
		(
			placement.logo_id,
			placement.width,
			placement.height,
			placement.x,
			placement.y,
			placement.rotated,
		)
		for placement in sheet.placements
	)
	return (sheet.size, placements)


#============================================
def group_identical_sheets(sheets: list[Sheet]) -> list[GroupedSheet]:
	"""
	Group structurally equal sheets, keeping first-seen order.

	Args:
		sheets: Sheets in generation order.

	Returns:
		Grouped sheets; quantities sum to len(sheets).
	"""
	representatives: dict[tuple, Sheet] = {}
	quantities: dict[tuple, int] = {}
	first_index: dict[tuple, int] = {}
	for index, sheet in enumerate(sheets):
		key = sheet_key(sheet)
		if key in quantities:
			quantities[key] += 1
			continue
		representatives[key] = sheet
		quantities[key] = 1
		first_index[key] = index
	return [
		GroupedSheet(sheet=representatives[key], quantity=quantities[key], index=first_index[key])
		for key in representatives
	]


#============================================
def expand_grouped_sheets(grouped: list[GroupedSheet]) -> list[Sheet]:
	"""
	Flatten grouped sheets back into one sheet per printed copy.

	Args:
		grouped: Grouped sheets.

	Returns:
		Sheets with each representative repeated by its quantity.
	"""
	sheets: list[Sheet] = []
	for entry in grouped:
		sheets.extend([entry.sheet] * entry.quantity)
	return sheets


#============================================
def total_cost(grouped: list[GroupedSheet]) -> float:
	"""
	Sum the price of every printed sheet.

	Args:
		grouped: Grouped sheets.

	Returns:
		Total price.
	"""
	return sum(entry.sheet.price * entry.quantity for entry in grouped)
