import pytest

import gang_sheet_builder.config
import gang_sheet_builder.dedup
import gang_sheet_builder.models
import gang_sheet_builder.packing


SheetSize = gang_sheet_builder.config.SheetSize


#============================================
def make_request(logo_id: str, width: float, quantity: int, source: str = "/nonexistent.png"):
	logo = gang_sheet_builder.models.LogoRef(
		logo_id=logo_id,
		description=f"Logo {logo_id}",
		account_name="Team",
		raster_url=source,
	)
	return gang_sheet_builder.models.SelectionRequest(logo=logo, width=width, quantity=quantity)


#============================================
def packed_sheets(ratio: float = 2.0) -> list:
	"""
	Three full Small sheets of the same logo plus a partial one.
	"""
	return gang_sheet_builder.packing.pack_requests(
		[make_request("a", 3.0, 70)],
		{"a": ratio},
		SheetSize.SMALL,
	)


#============================================
def test_identical_sheets_collapse_with_counts() -> None:
	sheets = packed_sheets()
	assert [len(sheet.placements) for sheet in sheets] == [21, 21, 21, 7]
	grouped = gang_sheet_builder.dedup.group_identical_sheets(sheets)
	assert [entry.quantity for entry in grouped] == [3, 1]
	assert [entry.index for entry in grouped] == [0, 3]
	assert grouped[0].sheet is sheets[0]


#============================================
def test_quantities_sum_to_input_length() -> None:
	sheets = packed_sheets() + packed_sheets(ratio=1.5)
	grouped = gang_sheet_builder.dedup.group_identical_sheets(sheets)
	assert sum(entry.quantity for entry in grouped) == len(sheets)
	keys = [gang_sheet_builder.dedup.sheet_key(entry.sheet) for entry in grouped]
	assert len(keys) == len(set(keys))


#============================================
def test_grouping_is_idempotent() -> None:
	sheets = packed_sheets()
	grouped = gang_sheet_builder.dedup.group_identical_sheets(sheets)
	regrouped = gang_sheet_builder.dedup.group_identical_sheets([entry.sheet for entry in grouped])
	assert [entry.quantity for entry in regrouped] == [1] * len(grouped)
	assert [entry.sheet for entry in regrouped] == [entry.sheet for entry in grouped]


#============================================
def test_placement_ids_do_not_affect_equality() -> None:
	"""
	Sheets packed in separate runs get fresh ids but still match.
	"""
	first = packed_sheets()
	second = packed_sheets()
	assert first[0].placements[0].placement_id != second[0].placements[0].placement_id
	grouped = gang_sheet_builder.dedup.group_identical_sheets([first[0], second[0]])
	assert len(grouped) == 1
	assert grouped[0].quantity == 2


#============================================
def test_different_size_or_rotation_stays_distinct() -> None:
	request = make_request("a", 3.0, 1)
	rotated = gang_sheet_builder.models.SelectionRequest(logo=request.logo, width=3.0, rotated=True)
	small = gang_sheet_builder.packing.pack_requests([request], {"a": 1.0}, SheetSize.SMALL)
	medium = gang_sheet_builder.packing.pack_requests([request], {"a": 1.0}, SheetSize.MEDIUM)
	turned = gang_sheet_builder.packing.pack_requests([rotated], {"a": 1.0}, SheetSize.SMALL)
	grouped = gang_sheet_builder.dedup.group_identical_sheets(small + medium + turned)
	assert [entry.quantity for entry in grouped] == [1, 1, 1]


#============================================
def test_empty_input() -> None:
	assert gang_sheet_builder.dedup.group_identical_sheets([]) == []
	assert gang_sheet_builder.dedup.total_cost([]) == 0


#============================================
def test_expand_and_total_cost() -> None:
	sheets = packed_sheets()
	grouped = gang_sheet_builder.dedup.group_identical_sheets(sheets)
	expanded = gang_sheet_builder.dedup.expand_grouped_sheets(grouped)
	assert len(expanded) == len(sheets)
	assert gang_sheet_builder.dedup.total_cost(grouped) == pytest.approx(4 * 3.35)


#============================================
def test_repeat_runs_from_images_merge(png_writer) -> None:
	"""
	Packing the same order twice from real image files gives matching sheets.
	"""
	image_path = png_writer("wide.png", 400, 100, (255, 0, 0, 255))
	requests_list = [make_request("wide", 4.0, 3, image_path)]
	first = gang_sheet_builder.packing.build_sheets(requests_list)
	second = gang_sheet_builder.packing.build_sheets(requests_list)
	assert first[0].placements[0].height == pytest.approx(1.0)
	grouped = gang_sheet_builder.dedup.group_identical_sheets(first + second)
	assert len(grouped) == 1
	assert grouped[0].quantity == 2
