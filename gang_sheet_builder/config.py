"""
Shared configuration and constants.
"""

# Standard Library
import dataclasses
import enum


POINTS_PER_INCH = 72.0

SPACING = 0.15
MARGIN = 0.2

DEFAULT_ASPECT_RATIO = 2.0
IMAGE_TIMEOUT = 10.0
MAX_IMAGE_WORKERS = 8

DPI = 300
FOOTER_HEIGHT = 0.65
THUMBNAIL_SIZE = 0.7
FOOTER_PADDING = 0.1
FOOTER_FONT_SIZE = 43
FOOTER_BACKGROUND = (248, 249, 250, 255)
FOOTER_BORDER = (233, 236, 239, 255)
FOOTER_TEXT_COLOR = (34, 34, 34, 255)
FOOTER_MUTED_COLOR = (102, 102, 102, 255)

DUPLICATE_OFFSET = 0.25
LOGOS_PER_PAGE = 40
PROGRESS_BAR_WIDTH = 20

WIDTH_PRESETS = {
	"Glove": 1.5,
	"Shirt": 9.5,
	"Bag": 10.5,
	"Shorts": 3.5,
}


#============================================
class SheetSize(enum.Enum):
	SMALL = "Small"
	MEDIUM = "Medium"
	LARGE = "Large"
	EXTRA_LARGE = "Extra Large"

	@property
	def width(self) -> float:
		return SHEET_DIMENSIONS[self][0]

	@property
	def height(self) -> float:
		return SHEET_DIMENSIONS[self][1]

	@property
	def price(self) -> float:
		return SHEET_PRICES[self]

	@classmethod
	def from_label(cls, label: str) -> "SheetSize":
		"""
		Look up a sheet size by its display label.

		Args:
			label: Label such as "Small" or "extra large".

		Returns:
			Matching SheetSize.
		"""
		normalized = label.strip().lower().replace("_", " ").replace("-", " ")
		for size in cls:
			if size.value.lower() == normalized:
				return size
		raise ValueError(f"Unknown sheet size: {label!r}")


SHEET_DIMENSIONS = {
	SheetSize.SMALL: (11.00, 12.50),
	SheetSize.MEDIUM: (22.50, 12.50),
	SheetSize.LARGE: (22.50, 25.00),
	SheetSize.EXTRA_LARGE: (22.50, 60.00),
}

SHEET_PRICES = {
	SheetSize.SMALL: 3.35,
	SheetSize.MEDIUM: 6.50,
	SheetSize.LARGE: 12.75,
	SheetSize.EXTRA_LARGE: 30.00,
}

# cost comparison order, smallest first
SHEET_SIZES = (
	SheetSize.SMALL,
	SheetSize.MEDIUM,
	SheetSize.LARGE,
	SheetSize.EXTRA_LARGE,
)
LARGEST_SHEET_SIZE = SHEET_SIZES[-1]


@dataclasses.dataclass
class ExportConfig:
	dpi: int
	include_footer: bool
	transparent: bool
	write_pdf: bool
	combined_pdf: bool


#============================================
def inches_to_points(value: float) -> float:
	"""
	Convert inches to points.

	Args:
		value: Inches value.

	Returns:
		Points value.
	"""
	return value * POINTS_PER_INCH


#============================================
def inches_to_pixels(value: float, dpi: int = DPI) -> int:
	"""
	Convert inches to whole pixels at the given resolution.

	Args:
		value: Inches value.
		dpi: Dots per inch.

	Returns:
		Rounded pixel count.
	"""
	return int(round(value * dpi))
