import pytest

import gang_sheet_builder.config
import gang_sheet_builder.editor
import gang_sheet_builder.models


editor = gang_sheet_builder.editor
SheetSize = gang_sheet_builder.config.SheetSize
DUPLICATE_OFFSET = gang_sheet_builder.config.DUPLICATE_OFFSET


#============================================
def make_sheet() -> gang_sheet_builder.models.Sheet:
	"""
	Three placements on a Small sheet: two in the first row, one below.
	"""
	logo = gang_sheet_builder.models.LogoRef(
		logo_id="42",
		description="Eagles",
		account_name="Eagles Youth",
		raster_url="/nonexistent.png",
	)
	request = gang_sheet_builder.models.SelectionRequest(logo=logo, width=2.0)
	placements = (
		gang_sheet_builder.models.Placement(request=request, x=1.0, y=1.0, width=2.0, height=1.0),
		gang_sheet_builder.models.Placement(request=request, x=4.0, y=1.0, width=2.0, height=1.0),
		gang_sheet_builder.models.Placement(request=request, x=1.0, y=5.0, width=2.0, height=1.0),
	)
	return gang_sheet_builder.models.Sheet(size=SheetSize.SMALL, placements=placements)


#============================================
def editing_session() -> editor.EditorSession:
	return editor.begin_editing(editor.open_session(make_sheet()))


#============================================
def geometry(session: editor.EditorSession) -> list[tuple]:
	return [
		(placement.placement_id, placement.x, placement.y, placement.width, placement.height)
		for placement in session.placements
	]


#============================================
def test_open_session_is_idle() -> None:
	session = editor.open_session(make_sheet())
	assert session.mode == editor.MODE_IDLE
	assert not session.is_editing
	assert session.selection == ()


#============================================
def test_mutations_are_noops_outside_editing() -> None:
	session = editor.open_session(make_sheet())
	assert editor.select(session, 0) is session
	assert editor.rotate_selection(session) is session
	assert editor.delete_selection(session) is session
	assert editor.drag_move(session, 0, 1.0, 1.0) is session
	assert editor.handle_key(session, "Delete") is session


#============================================
def test_invalid_index_is_noop() -> None:
	session = editing_session()
	assert editor.select(session, 7) is session
	assert editor.select(session, -1) is session
	assert editor.drag_move(session, 3, 1.0, 0.0) is session


#============================================
def test_select_replaces_and_additive_toggles() -> None:
	session = editing_session()
	ids = [placement.placement_id for placement in session.placements]
	session = editor.select(session, 0)
	assert session.selection == (ids[0],)
	session = editor.select(session, 1)
	assert session.selection == (ids[1],)
	session = editor.select(session, 2, additive=True)
	assert editor.selected_indices(session) == [1, 2]
	session = editor.select(session, 1, additive=True)
	assert editor.selected_indices(session) == [2]


#============================================
def test_group_selects_and_toggles_together() -> None:
	session = editing_session()
	session = editor.select(session, 0)
	session = editor.select(session, 2, additive=True)
	session = editor.group_selection(session)
	assert list(session.groups) == ["group-1"]
	session = editor.select(session, 1)
	session = editor.select(session, 2)
	assert sorted(editor.selected_indices(session)) == [0, 2]
	session = editor.select(session, 1, additive=True)
	session = editor.select(session, 0, additive=True)
	assert editor.selected_indices(session) == [1]


#============================================
def test_group_needs_two_members() -> None:
	session = editor.select(editing_session(), 0)
	assert editor.group_selection(session) is session


#============================================
def test_ungroup_removes_touching_groups() -> None:
	session = editing_session()
	session = editor.select(session, 0)
	session = editor.select(session, 1, additive=True)
	session = editor.group_selection(session)
	session = editor.select(session, 1)
	session = editor.ungroup_selection(session)
	assert session.groups == {}
	session = editor.select(session, 1)
	assert editor.selected_indices(session) == [1]


#============================================
def test_latest_group_wins_for_shared_member() -> None:
	session = editing_session()
	ids = [placement.placement_id for placement in session.placements]
	session = editor.select(session, 0)
	session = editor.select(session, 1, additive=True)
	session = editor.group_selection(session)
	session = select_ids(session, [ids[1], ids[2]])
	session = editor.group_selection(session)
	assert editor.group_for(session, ids[1]) == (ids[1], ids[2])
	assert editor.group_for(session, ids[0]) == (ids[0], ids[1])


#============================================
def select_ids(session: editor.EditorSession, placement_ids: list[str]) -> editor.EditorSession:
	"""
	Select exact ids by box-selecting each placement in turn.
	"""
	session = editor.begin_box_select(session, -1.0, -1.0)
	session = editor.end_pointer(session)
	for placement in session.placements:
		if placement.placement_id in placement_ids:
			session = editor.box_select(session, (placement.x, placement.y, placement.x, placement.y))
	return session


#============================================
def test_box_select_collects_touching_placements() -> None:
	session = editing_session()
	session = editor.begin_box_select(session, 0.0, 0.0)
	assert session.mode == editor.MODE_BOX_SELECTING
	session = editor.update_box_select(session, 4.5, 2.0)
	assert editor.selected_indices(session) == [0, 1]
	# shrinking the box never drops members
	session = editor.update_box_select(session, 0.5, 0.5)
	assert editor.selected_indices(session) == [0, 1]
	session = editor.end_pointer(session)
	assert session.mode == editor.MODE_EDITING
	assert session.box_origin is None


#============================================
def test_box_select_replaces_unless_additive() -> None:
	session = editor.select(editing_session(), 2)
	replaced = editor.begin_box_select(session, 0.0, 0.0)
	assert replaced.selection == ()
	kept = editor.begin_box_select(session, 0.0, 0.0, additive=True)
	kept = editor.update_box_select(kept, 3.5, 1.5)
	assert editor.selected_indices(kept) == [2, 0]


#============================================
def test_empty_box_selects_nothing() -> None:
	session = editor.box_select(editing_session(), (8.0, 8.0, 9.0, 9.0))
	assert session.selection == ()


#============================================
def test_rotate_swaps_around_center() -> None:
	session = editor.select(editing_session(), 0)
	session = editor.rotate_selection(session)
	placement = session.placements[0]
	assert (placement.width, placement.height) == (1.0, 2.0)
	assert placement.center == pytest.approx((2.0, 1.5))
	assert editor.rotation_for(session, placement.placement_id) == 90


#============================================
def test_four_rotations_restore_geometry() -> None:
	session = editor.select(editing_session(), 0)
	start = geometry(session)
	for _ in range(4):
		session = editor.rotate_selection(session)
	for before, after in zip(start, geometry(session)):
		assert before[0] == after[0]
		assert after[1:] == pytest.approx(before[1:])
	assert editor.rotation_for(session, session.placements[0].placement_id) == 0


#============================================
def test_rotation_near_edge_is_clamped() -> None:
	logo = gang_sheet_builder.models.LogoRef("1", "", "", "/nonexistent.png")
	request = gang_sheet_builder.models.SelectionRequest(logo=logo, width=4.0)
	placement = gang_sheet_builder.models.Placement(request=request, x=0.0, y=0.0, width=4.0, height=1.0)
	sheet = gang_sheet_builder.models.Sheet(size=SheetSize.SMALL, placements=(placement,))
	session = editor.select(editor.begin_editing(editor.open_session(sheet)), 0)
	session = editor.rotate_selection(session)
	turned = session.placements[0]
	assert (turned.x, turned.y) == (pytest.approx(1.5), 0.0)


#============================================
def test_duplicate_then_delete_restores_list() -> None:
	session = editing_session()
	start = geometry(session)
	session = editor.select(session, 0)
	session = editor.select(session, 2, additive=True)
	session = editor.duplicate_selection(session)
	assert len(session.placements) == 5
	copies = session.placements[3:]
	assert copies[0].x == pytest.approx(1.0 + DUPLICATE_OFFSET)
	assert copies[0].y == pytest.approx(1.0 + DUPLICATE_OFFSET)
	assert {copy.placement_id for copy in copies}.isdisjoint({entry[0] for entry in start})
	assert session.selection == tuple(copy.placement_id for copy in copies)
	session = editor.delete_selection(session)
	assert geometry(session) == start
	assert session.selection == ()


#============================================
def test_duplicate_copies_rotation() -> None:
	session = editor.select(editing_session(), 1)
	session = editor.rotate_selection(session)
	session = editor.duplicate_selection(session)
	copy = session.placements[-1]
	assert editor.rotation_for(session, copy.placement_id) == 90


#============================================
def test_delete_dissolves_small_groups_and_keeps_ids() -> None:
	session = editing_session()
	ids = [placement.placement_id for placement in session.placements]
	session = editor.select(session, 0)
	session = editor.select(session, 1, additive=True)
	session = editor.group_selection(session)
	session = editor.rotate_selection(session)
	session = editor.select(session, 2)
	session = editor.rotate_selection(session)
	session = editor.delete_selection(session)
	assert [placement.placement_id for placement in session.placements] == ids[:2]
	assert editor.rotation_for(session, ids[2]) == 0
	assert ids[2] not in session.rotations
	assert session.groups == {"group-1": (ids[0], ids[1])}
	session = editor.select(session, 0)
	session = editor.delete_selection(session)
	assert session.groups == {}


#============================================
def test_drag_moves_selection_and_clamps_each() -> None:
	session = editing_session()
	session = editor.select(session, 0)
	session = editor.select(session, 1, additive=True)
	session = editor.drag_move(session, 0, 6.0, -2.0)
	first, second, third = session.placements
	# second clamps at the right edge of the 11in sheet
	assert (first.x, first.y) == (pytest.approx(7.0), 0.0)
	assert (second.x, second.y) == (pytest.approx(9.0), 0.0)
	assert (third.x, third.y) == (1.0, 5.0)


#============================================
def test_drag_unselected_moves_group() -> None:
	session = editing_session()
	session = editor.select(session, 0)
	session = editor.select(session, 2, additive=True)
	session = editor.group_selection(session)
	session = editor.select(session, 1)
	session = editor.drag_move(session, 2, 1.0, 1.0)
	assert (session.placements[0].x, session.placements[0].y) == (2.0, 2.0)
	assert (session.placements[1].x, session.placements[1].y) == (4.0, 1.0)
	assert (session.placements[2].x, session.placements[2].y) == (2.0, 6.0)


#============================================
def test_begin_and_end_drag() -> None:
	session = editing_session()
	session = editor.begin_drag(session, 2)
	assert session.mode == editor.MODE_DRAGGING
	session = editor.end_drag(session, 0.5, -0.5)
	assert session.mode == editor.MODE_EDITING
	assert session.drag_id is None
	assert (session.placements[2].x, session.placements[2].y) == (1.5, 4.5)


#============================================
def test_handle_key_shortcuts() -> None:
	session = editor.select(editing_session(), 0)
	session = editor.select(session, 1, additive=True)
	grouped = editor.handle_key(session, "g", ctrl=True)
	assert len(grouped.groups) == 1
	ungrouped = editor.handle_key(grouped, "G", ctrl=True, shift=True)
	assert ungrouped.groups == {}
	rotated = editor.handle_key(session, "r")
	assert rotated.placements[0].width == 1.0
	duplicated = editor.handle_key(session, "d", ctrl=True)
	assert len(duplicated.placements) == 5
	deleted = editor.handle_key(session, "Backspace")
	assert len(deleted.placements) == 1
	assert editor.handle_key(session, "Escape").selection == ()
	assert editor.handle_key(session, "x") is session
	assert editor.handle_key(session, "d") is session


#============================================
def test_cancel_restores_saved_state() -> None:
	session = editing_session()
	start = geometry(session)
	session = editor.select(session, 0)
	session = editor.select(session, 1, additive=True)
	session = editor.group_selection(session)
	assert session.groups
	session = editor.select(session, 0)
	session = editor.rotate_selection(session)
	session = editor.duplicate_selection(session)
	session = editor.cancel_editing(session)
	assert session.mode == editor.MODE_IDLE
	assert geometry(session) == start
	assert session.rotations == {}
	assert session.selection == ()
	assert session.groups == {}
	session = editor.select(editor.begin_editing(session), 0)
	assert editor.selected_indices(session) == [0]


#============================================
def test_save_keeps_edits() -> None:
	session = editor.select(editing_session(), 0)
	session = editor.rotate_selection(session)
	session = editor.save_session(session)
	edited = geometry(session)
	assert session.mode == editor.MODE_IDLE
	assert session.saved_sheet is session.sheet
	session = editor.begin_editing(session)
	session = editor.select(session, 1)
	session = editor.delete_selection(session)
	session = editor.cancel_editing(session)
	assert geometry(session) == edited
	assert editor.rotation_for(session, session.placements[0].placement_id) == 90


#============================================
def test_saved_groups_survive_cancel() -> None:
	"""
	Groups committed by a save come back after a cancelled ungroup.
	"""
	session = editing_session()
	ids = [placement.placement_id for placement in session.placements]
	session = editor.select(session, 0)
	session = editor.select(session, 2, additive=True)
	session = editor.group_selection(session)
	session = editor.save_session(session)
	assert session.saved_groups == {"group-1": (ids[0], ids[2])}
	session = editor.begin_editing(session)
	session = editor.select(session, 0)
	session = editor.ungroup_selection(session)
	session = editor.select(session, 1)
	session = editor.select(session, 2, additive=True)
	session = editor.group_selection(session)
	assert list(session.groups) == ["group-2"]
	session = editor.cancel_editing(session)
	assert session.groups == {"group-1": (ids[0], ids[2])}
