import argparse
import curses
import json
import logging
import os
import sys

from cell_coercion import coerce_input
from config_paths import LOG_PATH, ensure_config_dirs, load_config
from datatable import DataTable
from file_type_handler import RecordFileHandler
from metadata_provider import (
    CatalogMetadataProvider,
    InferredMetadataProvider,
    MetadataError,
    load_catalog,
)
from table_config import TableConfig, split_list

# Make ESC snappy
os.environ.setdefault("ESCDELAY", "25")
from orchestrator import Orchestrator
from _version import __version__

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_parser():
    parser = argparse.ArgumentParser(
        prog="flowtable",
        description="flowtable - selectable, searchable, inline-editable record grid",
    )
    parser.add_argument("records", nargs="?", help="records file (.json, .csv, .parquet, .xlsx)")
    parser.add_argument("-v", "--version", action="store_true", help="print version and exit")
    parser.add_argument("--catalog", help="JSON field catalog used for column metadata")
    parser.add_argument("--object", help="object API name looked up in the catalog")
    parser.add_argument("--fields", help="comma-separated field paths to show")
    parser.add_argument("--labels", help="comma-separated custom column labels")
    parser.add_argument("--editable", help="comma-separated fields allowed to be edited")
    parser.add_argument("--mode", help="View Only, Single Select or Multi Select")
    parser.add_argument("--inline-edit", action="store_true", help="enable inline editing")
    parser.add_argument("--header", default="", help="header text above the grid")
    parser.add_argument("--rows", type=int, help="number of rows visible at a time")
    parser.add_argument("--row-numbers", action="store_true", help="show row numbers")
    parser.add_argument("--search", help="search term applied before output")
    parser.add_argument("--sort", help="FIELD or FIELD:desc")
    parser.add_argument("--select", help="comma-separated record ids to select")
    parser.add_argument(
        "--edit",
        action="append",
        default=[],
        metavar="ID:FIELD=VALUE",
        help="pending cell edit (repeatable)",
    )
    parser.add_argument("--print", dest="print_mode", action="store_true", help="print grid and outputs, no TUI")
    parser.add_argument("--out", help="write the output JSON to this file instead of stdout")
    parser.add_argument("--save-edits", help="write edited records to a records file")
    parser.add_argument("--verbose", action="store_true", help="debug logging")
    return parser


def configure_logging(verbose=False, to_file=False):
    level = logging.DEBUG if verbose else (logging.INFO if to_file else logging.WARNING)
    if to_file:
        # the terminal belongs to curses; log next to the config
        ensure_config_dirs()
        try:
            logging.basicConfig(filename=LOG_PATH, level=level, format=LOG_FORMAT)
            return
        except OSError:
            logging.getLogger().addHandler(logging.NullHandler())
            return
    logging.basicConfig(stream=sys.stderr, level=level, format=LOG_FORMAT)


def build_config(args, cfg, default_fields=()) -> TableConfig:
    """Config-file defaults first, explicit flags on top."""
    fields = args.fields or ",".join(default_fields)
    return TableConfig.from_inputs(
        {
            "objectApiName": args.object or "",
            "fieldNames": fields,
            "columnLabels": args.labels,
            "editableFields": args.editable,
            "selectionMode": args.mode or cfg["selection_mode"],
            "enableInlineEdit": bool(args.inline_edit or cfg["enable_inline_edit"]),
            "showSearch": bool(cfg["show_search"]),
            "visibleRows": args.rows if args.rows else cfg["visible_rows"],
            "headerText": args.header,
            "showRowNumbers": bool(args.row_numbers or cfg["show_row_numbers"]),
        }
    )


def parse_edit(text):
    """``ID:FIELD=VALUE`` -> (id, field, raw value)."""
    head, sep, value = text.partition("=")
    rid, colon, field_name = head.partition(":")
    if not sep or not colon or not rid.strip() or not field_name.strip():
        raise ValueError(f"Bad --edit '{text}' (expected ID:FIELD=VALUE)")
    return rid.strip(), field_name.strip(), value


def parse_sort(text):
    field_name, _, direction = text.partition(":")
    direction = direction.strip().lower() or "asc"
    if direction not in ("asc", "desc"):
        raise ValueError(f"Bad --sort direction '{direction}' (use asc or desc)")
    return field_name.strip(), direction


def apply_script(table: DataTable, args):
    """Replay the scripted interactions given on the command line."""
    for rid in split_list(args.select):
        if not table.toggle_row(rid):
            logger.warning("Cannot select record %s", rid)

    for edit_text in args.edit:
        rid, field_name, raw = parse_edit(edit_text)
        if not table.start_edit(rid, field_name):
            logger.warning("Cell %s.%s is not editable; skipped", rid, field_name)
            continue
        col = table.column(field_name)
        value = coerce_input(raw, col.data_type, col.choice_values)
        table.handle_cell_input(rid, field_name, value)
        table.handle_cell_key("Enter")

    if args.search:
        table.set_search(args.search)

    if args.sort:
        field_name, direction = parse_sort(args.sort)
        table.sort_by(field_name)
        if direction == "desc":
            table.sort_by(field_name)


def grid_text(view) -> str:
    if view.metadata_error:
        return f"Error loading columns: {view.metadata_error}"
    lines = []
    if view.header_text:
        lines.append(view.header_text)
    if view.result_count_text:
        lines.append(view.result_count_text)
    if not view.rows:
        lines.append("No matching records" if view.search_term else "No records")
    else:
        lines.append(view.to_frame().to_string(index=view.show_row_numbers))
    return "\n".join(lines)


def write_outputs(outputs, path=None):
    text = json.dumps(outputs, indent=2, default=str)
    if path:
        with open(path, "w", encoding="utf-8") as f:
            f.write(text + "\n")
    else:
        print(text)


def load_table(args):
    records = RecordFileHandler(args.records).load()
    if args.catalog:
        if not args.object:
            raise ValueError("--catalog needs --object")
        provider = CatalogMetadataProvider(load_catalog(args.catalog))
        default_fields = ()
    else:
        provider = InferredMetadataProvider(records)
        default_fields = provider.field_names()

    config = build_config(args, load_config(), default_fields)
    table = DataTable(config=config, records=records)
    table.load_metadata(provider)
    return table


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return 0

    if not args.records:
        parser.print_usage(sys.stderr)
        print("flowtable: a records file is required", file=sys.stderr)
        return 2

    configure_logging(args.verbose, to_file=not args.print_mode)

    try:
        table = load_table(args)
        apply_script(table, args)
    except (ValueError, RuntimeError, OSError, MetadataError) as e:
        print(f"flowtable: {e}", file=sys.stderr)
        return 1

    if args.print_mode:
        view = table.view
        print(grid_text(view))
        if view.metadata_error:
            return 1
        outputs = table.outputs()
    else:
        outputs = curses.wrapper(lambda stdscr: Orchestrator(stdscr, table, args.records).run())

    try:
        write_outputs(outputs, args.out)
        if args.save_edits:
            RecordFileHandler(args.save_edits).save(outputs["editedRecords"])
    except (ValueError, RuntimeError, OSError) as e:
        print(f"flowtable: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
