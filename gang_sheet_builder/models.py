"""
Catalog, request and sheet records.
"""

# Standard Library
import dataclasses
import itertools

# local repo modules
import gang_sheet_builder as gsb
import gang_sheet_builder.config


SheetSize = gsb.config.SheetSize

_PLACEMENT_COUNTER = itertools.count(1)


#============================================
def next_placement_id() -> str:
	"""
	Allocate a new stable placement identifier.

	Returns:
		Identifier string unique within the process.
	"""
	return f"p{next(_PLACEMENT_COUNTER)}"


@dataclasses.dataclass(frozen=True)
class LogoRef:
	logo_id: str
	description: str
	account_name: str
	raster_url: str
	vector_url: str | None = None

	@property
	def image_source(self) -> str:
		if self.vector_url:
			return self.vector_url
		return self.raster_url


@dataclasses.dataclass(frozen=True)
class SelectionRequest:
	logo: LogoRef
	width: float
	quantity: int = 1
	note: str = ""
	rotated: bool = False

	def __post_init__(self) -> None:
		if not self.width > 0:
			raise ValueError(f"Width must be positive, got {self.width!r}")
		if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
			raise ValueError(f"Quantity must be an integer, got {self.quantity!r}")
		if self.quantity < 1:
			raise ValueError(f"Quantity must be at least 1, got {self.quantity!r}")


@dataclasses.dataclass(eq=False)
class LogoInstance:
	request: SelectionRequest
	width: float
	height: float
	instance_id: str

	@property
	def rotated(self) -> bool:
		return self.request.rotated

	@property
	def effective_width(self) -> float:
		if self.rotated:
			return self.height
		return self.width

	@property
	def effective_height(self) -> float:
		if self.rotated:
			return self.width
		return self.height


@dataclasses.dataclass(frozen=True)
class Placement:
	request: SelectionRequest
	x: float
	y: float
	width: float
	height: float
	rotated: bool = False
	placement_id: str = dataclasses.field(default_factory=next_placement_id)

	@property
	def logo_id(self) -> str:
		return self.request.logo.logo_id

	@property
	def right(self) -> float:
		return self.x + self.width

	@property
	def bottom(self) -> float:
		return self.y + self.height

	@property
	def center(self) -> tuple[float, float]:
		return (self.x + self.width / 2.0, self.y + self.height / 2.0)


@dataclasses.dataclass(frozen=True)
class Sheet:
	size: SheetSize
	placements: tuple[Placement, ...] = ()

	@property
	def width(self) -> float:
		return self.size.width

	@property
	def height(self) -> float:
		return self.size.height

	@property
	def price(self) -> float:
		return self.size.price


@dataclasses.dataclass(frozen=True)
class GroupedSheet:
	sheet: Sheet
	quantity: int
	index: int
