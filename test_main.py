import json

import pytest

import config_paths
import main
from main import build_config, build_parser, grid_text, parse_edit, parse_sort


RECORDS = [
    {"Id": "1", "Name": "Alpha", "Status": "Open", "Amount": 100},
    {"Id": "2", "Name": "Jane Smith", "Status": "Open", "Amount": None},
    {"Id": "3", "Name": "Gamma", "Status": "Closed", "Amount": 50},
]


@pytest.fixture
def records_file(tmp_path, monkeypatch):
    # keep the user's config file out of the run
    monkeypatch.setattr(config_paths, "CONFIG_JSON", str(tmp_path / "absent.json"))
    path = tmp_path / "deals.json"
    path.write_text(json.dumps(RECORDS))
    return str(path)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1:Status=Closed", ("1", "Status", "Closed")),
        ("a1 : Name = x=y", ("a1", "Name", " x=y")),
        ("1:Amount=", ("1", "Amount", "")),
    ],
)
def test_parse_edit(text, expected):
    assert parse_edit(text) == expected


@pytest.mark.parametrize("text", ["1Status=Closed", "1:Status", ":Status=x", "1:=x"])
def test_parse_edit_rejects_malformed(text):
    with pytest.raises(ValueError):
        parse_edit(text)


@pytest.mark.parametrize(
    "text, expected",
    [("Amount", ("Amount", "asc")), ("Amount:DESC", ("Amount", "desc")), ("Name:asc", ("Name", "asc"))],
)
def test_parse_sort(text, expected):
    assert parse_sort(text) == expected


def test_parse_sort_rejects_unknown_direction():
    with pytest.raises(ValueError):
        parse_sort("Amount:up")


def test_flags_override_config_defaults():
    cfg = {
        "selection_mode": "Single Select",
        "enable_inline_edit": True,
        "show_search": True,
        "visible_rows": 7,
        "show_row_numbers": True,
    }
    args = build_parser().parse_args(["deals.json", "--mode", "Multi Select", "--rows", "3"])
    config = build_config(args, cfg, ["Id", "Name"])
    assert config.selection_mode == "Multi Select"
    assert config.visible_rows == 3
    assert config.enable_inline_edit is True
    assert config.show_row_numbers is True
    assert config.field_names == ("Id", "Name")

    args = build_parser().parse_args(["deals.json", "--fields", "Name"])
    config = build_config(args, cfg, ["Id", "Name"])
    assert config.selection_mode == "Single Select"
    assert config.visible_rows == 7
    assert config.field_names == ("Name",)


def test_version_flag(capsys):
    assert main.main(["-v"]) == 0
    assert capsys.readouterr().out.strip() == main.__version__


def test_missing_records_argument(capsys):
    assert main.main([]) == 2
    assert "records file is required" in capsys.readouterr().err


def test_print_mode_sorts_and_reports_outputs(records_file, capsys):
    rc = main.main([records_file, "--print", "--fields", "Name,Amount", "--sort", "Amount"])
    assert rc == 0
    out = capsys.readouterr().out
    grid, _, payload = out.partition("{")
    lines = grid.strip().splitlines()
    assert lines[0].split() == ["Name", "Amount"]
    assert [line.split()[0] for line in lines[1:]] == ["Gamma", "Alpha", "Jane"]
    outputs = json.loads("{" + payload)
    assert outputs == {"selectedRecords": [], "selectedCount": 0, "editedRecords": []}


def test_print_mode_select_edit_and_search(records_file, capsys, tmp_path):
    out_path = tmp_path / "outputs.json"
    rc = main.main(
        [
            records_file,
            "--print",
            "--fields", "Name,Status,Amount",
            "--mode", "Multi Select",
            "--inline-edit",
            "--select", "1,3",
            "--edit", "1:Status=Closed",
            "--edit", "2:Status=Closed",
            "--edit", "3:Status=Closed",
            "--search", "smith",
            "--out", str(out_path),
        ]
    )
    assert rc == 0
    printed = capsys.readouterr().out
    assert "Showing 1 of 3" in printed
    outputs = json.loads(out_path.read_text())
    assert outputs["selectedCount"] == 2
    assert [r["Id"] for r in outputs["selectedRecords"]] == ["1", "3"]
    # record 3 already Closed, record 2 is not selected
    assert outputs["editedRecords"] == [dict(RECORDS[0], Status="Closed")]


def test_print_mode_reports_bad_typed_edit(records_file, capsys):
    rc = main.main([records_file, "--print", "--inline-edit", "--fields", "Amount", "--edit", "1:Amount=lots"])
    assert rc == 1
    assert "Cannot coerce" in capsys.readouterr().err


def test_print_mode_catalog_error(records_file, tmp_path, capsys):
    catalog = tmp_path / "catalog.json"
    catalog.write_text(json.dumps({"objects": {}}))
    rc = main.main([records_file, "--print", "--catalog", str(catalog), "--object", "Deal"])
    assert rc == 1
    assert "Error loading columns: Unknown object: Deal" in capsys.readouterr().out


def test_unsupported_records_file(tmp_path, capsys):
    rc = main.main([str(tmp_path / "deals.txt"), "--print"])
    assert rc == 1
    assert "Unsupported file type" in capsys.readouterr().err


def test_save_edits_writes_records_file(records_file, tmp_path, capsys):
    saved = tmp_path / "edited.csv"
    rc = main.main(
        [records_file, "--print", "--inline-edit", "--fields", "Name", "--edit", "2:Name=Jane Doe",
         "--save-edits", str(saved)]
    )
    assert rc == 0
    assert "Jane Doe" in saved.read_text()


def test_grid_text_without_rows():
    class View:
        metadata_error = None
        header_text = "Deals"
        result_count_text = ""
        rows = ()
        search_term = "zzz"

    assert grid_text(View()) == "Deals\nNo matching records"
