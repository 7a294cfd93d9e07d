"""
Placement editing sessions.

An EditorSession is a value: every operation takes a session and returns a
new one, and the placement tuple is always replaced as a whole. Selection,
groups and the rotation overlay are keyed by placement_id, so they survive
deletes and duplicates that shift list indices.

Mutating operations only act in the "editing" mode and are no-ops anywhere
else or when called with invalid arguments.
"""

# Standard Library
import dataclasses

# local repo modules
import gang_sheet_builder as gsb
import gang_sheet_builder.config
import gang_sheet_builder.models


Placement = gsb.models.Placement
Sheet = gsb.models.Sheet

DUPLICATE_OFFSET = gsb.config.DUPLICATE_OFFSET

MODE_IDLE = "idle"
MODE_EDITING = "editing"
MODE_DRAGGING = "dragging"
MODE_BOX_SELECTING = "box_selecting"


@dataclasses.dataclass(frozen=True)
class EditorSession:
	sheet: Sheet
	saved_sheet: Sheet
	mode: str = MODE_IDLE
	selection: tuple[str, ...] = ()
	groups: dict[str, tuple[str, ...]] = dataclasses.field(default_factory=dict)
	rotations: dict[str, int] = dataclasses.field(default_factory=dict)
	saved_rotations: dict[str, int] = dataclasses.field(default_factory=dict)
	saved_groups: dict[str, tuple[str, ...]] = dataclasses.field(default_factory=dict)
	group_counter: int = 0
	drag_id: str | None = None
	box_origin: tuple[float, float] | None = None
	box_current: tuple[float, float] | None = None

	@property
	def placements(self) -> tuple[Placement, ...]:
		return self.sheet.placements

	@property
	def is_editing(self) -> bool:
		return self.mode != MODE_IDLE


#============================================
def open_session(sheet: Sheet, rotations: dict[str, int] | None = None) -> EditorSession:
	"""
	Open an idle viewing session on a sheet.

	Args:
		sheet: Sheet to view.
		rotations: Previously saved rotation overlay.

	Returns:
		Idle EditorSession.
	"""
	overlay = dict(rotations or {})
	return EditorSession(
		sheet=sheet,
		saved_sheet=sheet,
		rotations=overlay,
		saved_rotations=dict(overlay),
	)


#============================================
def begin_editing(session: EditorSession) -> EditorSession:
	if session.mode != MODE_IDLE:
		return session
	return dataclasses.replace(session, mode=MODE_EDITING)


#============================================
def save_session(session: EditorSession) -> EditorSession:
	"""
	Leave editing and make the edited sheet the canonical one.

	Args:
		session: Session in any editing mode.

	Returns:
		Idle session whose sheet, overlay and groups are now saved.
	"""
	if session.mode == MODE_IDLE:
		return session
	return dataclasses.replace(
		session,
		mode=MODE_IDLE,
		saved_sheet=session.sheet,
		saved_rotations=dict(session.rotations),
		saved_groups=dict(session.groups),
		selection=(),
		drag_id=None,
		box_origin=None,
		box_current=None,
	)


#============================================
def cancel_editing(session: EditorSession) -> EditorSession:
	"""
	Leave editing and discard every change since the last save.

	Args:
		session: Session in any editing mode.

	Returns:
		Idle session restored to the saved sheet, overlay and groups.
	"""
	if session.mode == MODE_IDLE:
		return session
	return dataclasses.replace(
		session,
		mode=MODE_IDLE,
		sheet=session.saved_sheet,
		rotations=dict(session.saved_rotations),
		groups=dict(session.saved_groups),
		selection=(),
		drag_id=None,
		box_origin=None,
		box_current=None,
	)


#============================================
def clamp_position(
	x: float,
	y: float,
	width: float,
	height: float,
	sheet: Sheet,
) -> tuple[float, float]:
	"""
	Clamp a top-left position so the box stays on the sheet.

	Args:
		x: Proposed left edge.
		y: Proposed top edge.
		width: Box width.
		height: Box height.
		sheet: Sheet providing the bounds.

	Returns:
		Clamped (x, y).
	"""
	clamped_x = max(0.0, min(sheet.width - width, x))
	clamped_y = max(0.0, min(sheet.height - height, y))
	return (clamped_x, clamped_y)


#============================================
def index_of(session: EditorSession, placement_id: str) -> int | None:
	for index, placement in enumerate(session.placements):
		if placement.placement_id == placement_id:
			return index
	return None


#============================================
def selected_indices(session: EditorSession) -> list[int]:
	"""
	Current selection as list indices, in selection order.

	Args:
		session: Editor session.

	Returns:
		Indices of selected placements.
	"""
	indices = []
	for placement_id in session.selection:
		index = index_of(session, placement_id)
		if index is not None:
			indices.append(index)
	return indices


#============================================
def group_for(session: EditorSession, placement_id: str) -> tuple[str, ...]:
	"""
	Find the group a placement belongs to.

	When a placement sits in several groups the most recently created one
	wins.

	Args:
		session: Editor session.
		placement_id: Placement to look up.

	Returns:
		Member ids of the group, or an empty tuple.
	"""
	found: tuple[str, ...] = ()
	for members in session.groups.values():
		if placement_id in members:
			found = members
	return found


#============================================
def rotation_for(session: EditorSession, placement_id: str) -> int:
	return session.rotations.get(placement_id, 0)


#============================================
def _merge_ids(existing: tuple[str, ...], added: list[str] | tuple[str, ...]) -> tuple[str, ...]:
	merged = list(existing)
	for placement_id in added:
		if placement_id not in merged:
			merged.append(placement_id)
	return tuple(merged)


#============================================
def select(session: EditorSession, index: int, additive: bool = False) -> EditorSession:
	"""
	Select a placement, or its whole group.

	Without the additive modifier the selection is replaced. With it the
	placement (or its whole group) is toggled in or out of the selection.

	Args:
		session: Editor session.
		index: Placement index.
		additive: Toggle instead of replace.

	Returns:
		Updated session.
	"""
	if session.mode != MODE_EDITING:
		return session
	if index < 0 or index >= len(session.placements):
		return session
	placement_id = session.placements[index].placement_id
	members = group_for(session, placement_id) or (placement_id,)

	if not additive:
		return dataclasses.replace(session, selection=tuple(members))

	if placement_id in session.selection:
		selection = tuple(item for item in session.selection if item not in members)
	else:
		selection = _merge_ids(session.selection, members)
	return dataclasses.replace(session, selection=selection)


#============================================
def clear_selection(session: EditorSession) -> EditorSession:
	if session.mode != MODE_EDITING:
		return session
	return dataclasses.replace(session, selection=())


#============================================
def placements_in_rect(
	placements: tuple[Placement, ...],
	rect: tuple[float, float, float, float],
) -> list[str]:
	"""
	Find placements whose box touches a rectangle.

	Args:
		placements: Placements to test.
		rect: Rectangle as (x0, y0, x1, y1), corners in any order.

	Returns:
		Matching placement ids in list order.
	"""
	left = min(rect[0], rect[2])
	right = max(rect[0], rect[2])
	top = min(rect[1], rect[3])
	bottom = max(rect[1], rect[3])
	matches = []
	for placement in placements:
		if (
			placement.right >= left
			and placement.x <= right
			and placement.bottom >= top
			and placement.y <= bottom
		):
			matches.append(placement.placement_id)
	return matches


#============================================
def box_select(
	session: EditorSession,
	rect: tuple[float, float, float, float],
) -> EditorSession:
	"""
	Add every placement touching the rectangle to the selection.

	Args:
		session: Editor session.
		rect: Rectangle as (x0, y0, x1, y1).

	Returns:
		Updated session; nothing is ever removed from the selection.
	"""
	if session.mode not in (MODE_EDITING, MODE_BOX_SELECTING):
		return session
	matches = placements_in_rect(session.placements, rect)
	return dataclasses.replace(session, selection=_merge_ids(session.selection, matches))


#============================================
def begin_box_select(
	session: EditorSession,
	x: float,
	y: float,
	additive: bool = False,
) -> EditorSession:
	if session.mode != MODE_EDITING:
		return session
	selection = session.selection if additive else ()
	return dataclasses.replace(
		session,
		mode=MODE_BOX_SELECTING,
		selection=selection,
		box_origin=(x, y),
		box_current=(x, y),
	)


#============================================
def update_box_select(session: EditorSession, x: float, y: float) -> EditorSession:
	if session.mode != MODE_BOX_SELECTING or session.box_origin is None:
		return session
	moved = dataclasses.replace(session, box_current=(x, y))
	origin_x, origin_y = session.box_origin
	return box_select(moved, (origin_x, origin_y, x, y))


#============================================
def end_pointer(session: EditorSession) -> EditorSession:
	"""
	Finish a box selection or abandon a drag without moving anything.

	Args:
		session: Editor session.

	Returns:
		Session back in editing mode.
	"""
	if session.mode not in (MODE_BOX_SELECTING, MODE_DRAGGING):
		return session
	return dataclasses.replace(
		session,
		mode=MODE_EDITING,
		drag_id=None,
		box_origin=None,
		box_current=None,
	)


#============================================
def group_selection(session: EditorSession) -> EditorSession:
	"""
	Create a group from the current selection.

	Args:
		session: Editor session.

	Returns:
		Session with a new group, or unchanged when fewer than two are selected.
	"""
	if session.mode != MODE_EDITING or len(session.selection) < 2:
		return session
	counter = session.group_counter + 1
	groups = dict(session.groups)
	groups[f"group-{counter}"] = tuple(session.selection)
	return dataclasses.replace(session, groups=groups, group_counter=counter)


#============================================
def ungroup_selection(session: EditorSession) -> EditorSession:
	"""
	Delete every group that shares a member with the selection.

	Args:
		session: Editor session.

	Returns:
		Updated session.
	"""
	if session.mode != MODE_EDITING or not session.selection:
		return session
	selected = set(session.selection)
	groups = {
		group_id: members
		for group_id, members in session.groups.items()
		if not selected.intersection(members)
	}
	return dataclasses.replace(session, groups=groups)


#============================================
def rotate_placement(placement: Placement, sheet: Sheet) -> Placement:
	"""
	Swap a placement's width and height around its center.

	Args:
		placement: Placement to turn.
		sheet: Sheet providing the bounds.

	Returns:
		Rotated placement, clamped onto the sheet.
	"""
	center_x, center_y = placement.center
	new_width = placement.height
	new_height = placement.width
	new_x, new_y = clamp_position(
		center_x - new_width / 2.0,
		center_y - new_height / 2.0,
		new_width,
		new_height,
		sheet,
	)
	return dataclasses.replace(placement, x=new_x, y=new_y, width=new_width, height=new_height)


#============================================
def rotate_selection(session: EditorSession) -> EditorSession:
	"""
	Turn every selected placement by 90 degrees clockwise.

	Args:
		session: Editor session.

	Returns:
		Updated session.
	"""
	if session.mode != MODE_EDITING or not session.selection:
		return session
	selected = set(session.selection)
	rotations = dict(session.rotations)
	placements = []
	for placement in session.placements:
		if placement.placement_id in selected:
			rotations[placement.placement_id] = (rotations.get(placement.placement_id, 0) + 90) % 360
			placement = rotate_placement(placement, session.sheet)
		placements.append(placement)
	sheet = dataclasses.replace(session.sheet, placements=tuple(placements))
	return dataclasses.replace(session, sheet=sheet, rotations=rotations)


#============================================
def duplicate_selection(session: EditorSession) -> EditorSession:
	"""
	Append an offset copy of every selected placement.

	Copies get fresh placement ids and carry the original's overlay
	rotation. The selection becomes the copies.

	Args:
		session: Editor session.

	Returns:
		Updated session.
	"""
	if session.mode != MODE_EDITING or not session.selection:
		return session
	by_id = {placement.placement_id: placement for placement in session.placements}
	rotations = dict(session.rotations)
	copies = []
	for placement_id in session.selection:
		original = by_id.get(placement_id)
		if original is None:
			continue
		new_x, new_y = clamp_position(
			original.x + DUPLICATE_OFFSET,
			original.y + DUPLICATE_OFFSET,
			original.width,
			original.height,
			session.sheet,
		)
		copy = dataclasses.replace(
			original,
			x=new_x,
			y=new_y,
			placement_id=gsb.models.next_placement_id(),
		)
		if placement_id in rotations:
			rotations[copy.placement_id] = rotations[placement_id]
		copies.append(copy)
	if not copies:
		return session
	sheet = dataclasses.replace(session.sheet, placements=session.placements + tuple(copies))
	selection = tuple(copy.placement_id for copy in copies)
	return dataclasses.replace(session, sheet=sheet, rotations=rotations, selection=selection)


#============================================
def delete_selection(session: EditorSession) -> EditorSession:
	"""
	Remove every selected placement.

	Groups left with fewer than two members are dissolved, and overlay
	entries for removed placements are dropped.

	Args:
		session: Editor session.

	Returns:
		Updated session with an empty selection.
	"""
	if session.mode != MODE_EDITING or not session.selection:
		return session
	removed = set(session.selection)
	placements = tuple(
		placement for placement in session.placements
		if placement.placement_id not in removed
	)
	groups = {}
	for group_id, members in session.groups.items():
		surviving = tuple(member for member in members if member not in removed)
		if len(surviving) >= 2:
			groups[group_id] = surviving
	rotations = {
		placement_id: angle
		for placement_id, angle in session.rotations.items()
		if placement_id not in removed
	}
	sheet = dataclasses.replace(session.sheet, placements=placements)
	return dataclasses.replace(
		session,
		sheet=sheet,
		groups=groups,
		rotations=rotations,
		selection=(),
	)


#============================================
def drag_targets(session: EditorSession, placement_id: str) -> tuple[str, ...]:
	"""
	Work out which placements move together with a dragged one.

	Args:
		session: Editor session.
		placement_id: Dragged placement.

	Returns:
		The selection if it holds the dragged placement, else its group,
		else the placement alone.
	"""
	if placement_id in session.selection:
		return session.selection
	members = group_for(session, placement_id)
	if members:
		return members
	return (placement_id,)


#============================================
def drag_move(session: EditorSession, index: int, dx: float, dy: float) -> EditorSession:
	"""
	Move a dragged placement and everything that travels with it.

	Each moved placement is clamped onto the sheet on its own, so members
	of a group can separate at the sheet edges.

	Args:
		session: Editor session.
		index: Index of the dragged placement.
		dx: Horizontal offset in inches.
		dy: Vertical offset in inches.

	Returns:
		Updated session.
	"""
	if session.mode not in (MODE_EDITING, MODE_DRAGGING):
		return session
	if index < 0 or index >= len(session.placements):
		return session
	moving = set(drag_targets(session, session.placements[index].placement_id))
	placements = []
	for placement in session.placements:
		if placement.placement_id in moving:
			new_x, new_y = clamp_position(
				placement.x + dx,
				placement.y + dy,
				placement.width,
				placement.height,
				session.sheet,
			)
			placement = dataclasses.replace(placement, x=new_x, y=new_y)
		placements.append(placement)
	sheet = dataclasses.replace(session.sheet, placements=tuple(placements))
	return dataclasses.replace(session, sheet=sheet)


#============================================
def begin_drag(session: EditorSession, index: int) -> EditorSession:
	if session.mode != MODE_EDITING:
		return session
	if index < 0 or index >= len(session.placements):
		return session
	return dataclasses.replace(
		session,
		mode=MODE_DRAGGING,
		drag_id=session.placements[index].placement_id,
	)


#============================================
def end_drag(session: EditorSession, dx: float, dy: float) -> EditorSession:
	"""
	Drop the dragged placement after moving it by the pointer delta.

	Args:
		session: Session in dragging mode.
		dx: Horizontal offset in inches.
		dy: Vertical offset in inches.

	Returns:
		Session back in editing mode.
	"""
	if session.mode != MODE_DRAGGING or session.drag_id is None:
		return session
	index = index_of(session, session.drag_id)
	if index is not None:
		session = drag_move(session, index, dx, dy)
	return end_pointer(session)


#============================================
def handle_key(
	session: EditorSession,
	key: str,
	ctrl: bool = False,
	shift: bool = False,
) -> EditorSession:
	"""
	Apply a keyboard shortcut.

	Args:
		session: Editor session.
		key: Key name, such as "r", "Delete" or "g".
		ctrl: Ctrl or Cmd held.
		shift: Shift held.

	Returns:
		Updated session; unknown keys leave it unchanged.
	"""
	if session.mode != MODE_EDITING or not session.selection:
		return session
	name = key.lower()
	if name == "escape":
		return clear_selection(session)
	if name in ("backspace", "delete"):
		return delete_selection(session)
	if name == "r" and not ctrl:
		return rotate_selection(session)
	if name == "d" and ctrl:
		return duplicate_selection(session)
	if name == "g" and ctrl:
		if shift:
			return ungroup_selection(session)
		return group_selection(session)
	return session
