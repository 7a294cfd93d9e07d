"""
Pytest configuration for local imports and shared artwork fixtures.
"""

# Standard Library
import os
import pathlib
import sys

# PIP3 modules
import PIL.Image
import pytest


#============================================
def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path so gang_sheet_builder imports.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()


#============================================
@pytest.fixture
def png_writer(tmp_path: pathlib.Path):
	"""
	Write solid-color RGBA PNG files into the test's tmp directory.

	Returns:
		Callable (name, width, height, color) -> path string.
	"""
	def write(
		name: str,
		width: int,
		height: int,
		color: tuple[int, int, int, int] = (0, 0, 255, 255),
	) -> str:
		path = tmp_path / name
		PIL.Image.new("RGBA", (width, height), color).save(path)
		return str(path)

	return write
