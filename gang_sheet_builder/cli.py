"""
CLI entry points for building gang sheets from a logo order.
"""

# Standard Library
import argparse
import pathlib
import sys
import time

# local repo modules
import gang_sheet_builder as gsb
import gang_sheet_builder.catalog
import gang_sheet_builder.config
import gang_sheet_builder.dedup
import gang_sheet_builder.export
import gang_sheet_builder.packing


ExportConfig = gsb.config.ExportConfig
SheetSize = gsb.config.SheetSize
CatalogError = gsb.catalog.CatalogError

DPI = gsb.config.DPI
LOGOS_PER_PAGE = gsb.config.LOGOS_PER_PAGE


#============================================
def build_config(args: argparse.Namespace) -> ExportConfig:
	"""
	Build export config from CLI args.

	Args:
		args: Parsed argparse namespace.

	Returns:
		ExportConfig.
	"""
	return ExportConfig(
		dpi=args.dpi,
		include_footer=args.include_footer,
		transparent=args.transparent,
		write_pdf=args.write_pdf,
		combined_pdf=args.combined_pdf,
	)


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Args:
		argv: Optional argument list; defaults to sys.argv.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Arrange catalog logos onto priced gang sheets.")
	parser.add_argument("order", nargs="?", default=None, help="Order JSON file with logo selections.")

	catalog_group = parser.add_argument_group("Catalog")
	catalog_group.add_argument("-c", "--catalog", dest="catalog_path", required=True, help="Catalog JSON path.")
	catalog_group.add_argument("-q", "--search", dest="search", default=None, help="Search the catalog and exit.")
	catalog_group.add_argument("--page", dest="page", type=int, default=1, help="Search results page.")

	output_group = parser.add_argument_group("Output")
	output_group.add_argument("-o", "--output", dest="output_dir", default="sheets", help="Output directory.")
	output_group.add_argument("-m", "--manifest", dest="manifest_path", default=None, help="Output manifest JSON path.")
	output_group.add_argument("--dpi", dest="dpi", type=int, default=DPI, help="Export resolution.")

	behavior_group = parser.add_argument_group("Behavior")
	behavior_group.add_argument(
		"-s", "--sheet-size", dest="sheet_size", default=None,
		help="Pin every sheet to one size (Small, Medium, Large, Extra Large).",
	)
	behavior_group.add_argument("-p", "--pdf", dest="write_pdf", action="store_true", help="Write one PDF per unique sheet.")
	behavior_group.add_argument("-a", "--all-pdf", dest="combined_pdf", action="store_true", help="Write every printed sheet into one PDF.")
	behavior_group.add_argument("-f", "--footer", dest="include_footer", action="store_true", help="Add the logo legend footer.")
	behavior_group.add_argument("-F", "--no-footer", dest="include_footer", action="store_false", help="Omit the legend footer.")
	behavior_group.add_argument("-t", "--transparent", dest="transparent", action="store_true", help="Transparent PNG background.")
	behavior_group.add_argument("-T", "--no-transparent", dest="transparent", action="store_false", help="White PNG background.")
	behavior_group.add_argument(
		"--stop-before-rendering",
		dest="stop_before_rendering",
		action="store_true",
		help="Stop after packing (skip image export).",
	)

	parser.set_defaults(
		write_pdf=False,
		combined_pdf=False,
		include_footer=True,
		transparent=True,
		stop_before_rendering=False,
	)

	args = parser.parse_args(argv)
	if args.search is None and args.order is None:
		parser.error("an order file is required unless --search is given")
	return args


#============================================
def run_search(args: argparse.Namespace) -> None:
	"""
	Print one page of catalog search results.

	Args:
		args: Parsed argparse namespace.
	"""
	records = gsb.catalog.load_catalog(pathlib.Path(args.catalog_path))
	page = gsb.catalog.search_catalog(records, args.search, args.page, LOGOS_PER_PAGE)
	print(f"Matches: {page.total_count} (page {page.page} of {max(1, page.total_pages)})")
	for logo in page.records:
		print(f"{logo.logo_id}\t{logo.account_name}\t{logo.description}")


#============================================
def run_pipeline(args: argparse.Namespace) -> None:
	"""
	Run the full pipeline from order file to exported sheets.

	Args:
		args: Parsed argparse namespace.
	"""
	print("Gang sheet pipeline")
	print(f"Order: {args.order}")
	print(f"Output directory: {args.output_dir}")
	preferred_size = None
	if args.sheet_size:
		preferred_size = SheetSize.from_label(args.sheet_size)
		print(f"Pinned sheet size: {preferred_size.value}")

	records = gsb.catalog.load_catalog(pathlib.Path(args.catalog_path))
	print(f"Catalog logos: {len(records)}")
	requests_list, order_size = gsb.catalog.load_order(pathlib.Path(args.order), records)
	if preferred_size is None and order_size is not None:
		preferred_size = order_size
		print(f"Pinned sheet size from order: {preferred_size.value}")
	total_logos = sum(request.quantity for request in requests_list)
	print(f"Selections: {len(requests_list)} ({total_logos} logos)")

	start_time = time.perf_counter()
	sheets = gsb.packing.build_sheets(requests_list, preferred_size, verbose=True)
	grouped = gsb.dedup.group_identical_sheets(sheets)
	pack_end = time.perf_counter()
	print(f"Sheets generated: {len(sheets)} ({len(grouped)} unique)")
	for entry in grouped:
		print(
			f"  {entry.sheet.size.value}: {len(entry.sheet.placements)} logos"
			f" x{entry.quantity} @ ${entry.sheet.price:.2f}"
		)
	print(f"Total cost: ${gsb.dedup.total_cost(grouped):.2f}")

	output_dir = pathlib.Path(args.output_dir)
	outputs: list[str] = []
	if args.stop_before_rendering:
		print("Stopping before rendering sheets.")
	else:
		config = build_config(args)
		cache: gsb.export.ImageCache = {}
		total = len(grouped)
		for position, entry in enumerate(grouped, start=1):
			filename = gsb.export.sheet_png_filename(entry.sheet, entry.quantity)
			if total > 1:
				filename = f"{position:02d}-{filename}"
			png_path = gsb.export.render_sheet_png(entry.sheet, output_dir / filename, None, config, cache)
			outputs.append(str(png_path))
			if config.write_pdf:
				pdf_path = output_dir / gsb.export.sheet_pdf_filename(entry.sheet, entry.index)
				gsb.export.render_sheet_pdf(entry.sheet, pdf_path, None, config, cache)
				outputs.append(str(pdf_path))
			gsb.export.print_progress("Sheets", position, total)
		if total > 0:
			print()
		if config.combined_pdf and grouped:
			combined_path = output_dir / "all-gang-sheets.pdf"
			pages = gsb.export.write_sheets_pdf(
				gsb.dedup.expand_grouped_sheets(grouped),
				combined_path,
				config=config,
				cache=cache,
				verbose=True,
			)
			outputs.append(str(combined_path))
			print(f"Combined PDF pages: {pages}")
	render_end = time.perf_counter()

	manifest_path = args.manifest_path
	if manifest_path is None:
		manifest_path = str(output_dir / "manifest.json")
	size_label = preferred_size.value if preferred_size else None
	gsb.export.write_manifest(pathlib.Path(manifest_path), grouped, outputs, size_label)
	print(
		"Timing: pack={:.2f}s render={:.2f}s".format(
			pack_end - start_time,
			render_end - pack_end,
		)
	)
	print(f"Manifest written: {manifest_path}")


#============================================
def main(argv: list[str] | None = None) -> None:
	"""
	Main entry point.
	"""
	args = parse_args(argv)
	try:
		if args.search is not None:
			run_search(args)
		else:
			run_pipeline(args)
	except CatalogError as error:
		print(f"Catalog error: {error}", file=sys.stderr)
		print("Check the catalog and order files, then try again.", file=sys.stderr)
		raise SystemExit(1) from error
