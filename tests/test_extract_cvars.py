import json
import re
import time
from pathlib import Path

import pytest

from cvardump.ingestion.extract_cvars import (
    DuplicateCountError,
    extract_cvars,
    parse_attributes,
    parse_cvar_line,
    split_columns,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures"

EXAMPLE = (
    'sv_cheats : 0 : sv, rep, "CHEAT" : Allow cheats\n'
    "banner text goes here\n"
    "fov_desired : 90 : cl : Field of view\n"
    "2 total convars/concommands\n"
)


def load_fixture():
    with open(FIXTURES_DIR / "cvarlist.json", "r") as f:
        return json.load(f)


def load_fixture_lines():
    return (FIXTURES_DIR / "cvarlist.txt").read_text(encoding="utf-8").splitlines()


@pytest.mark.parametrize("case", load_fixture()["cases"])
def test_fixture_dump_contains_expected_cvar(case, cvarlist_text):
    result = extract_cvars(cvarlist_text)
    by_name = {r.name: r for r in result.records}
    assert case["name"] in by_name, f"Missing cvar {case['name']}"
    rec = by_name[case["name"]]
    assert rec.default_value == case["default_value"]
    assert rec.attributes == case["attributes"]
    assert rec.description == case["description"]


def test_fixture_dump_order_and_count(cvarlist_text):
    data = load_fixture()
    result = extract_cvars(cvarlist_text)
    assert [r.name for r in result.records] == [c["name"] for c in data["cases"]]
    assert result.expected_count == data["expected_count"]
    assert result.count_mismatch() == 0


def test_example_dump():
    result = extract_cvars(EXAMPLE)
    assert result.expected_count == 2
    assert len(result.records) == 2
    cheats, fov = result.records
    assert (cheats.name, cheats.default_value, cheats.attributes, cheats.description) == (
        "sv_cheats", "0", ["CHEAT"], "Allow cheats"
    )
    assert (fov.name, fov.default_value, fov.attributes, fov.description) == (
        "fov_desired", "90", [], "Field of view"
    )


def test_extract_is_repeatable():
    assert extract_cvars(EXAMPLE) == extract_cvars(EXAMPLE)


def test_attributes_keep_order_and_duplicates():
    rec = parse_cvar_line('x : 1 : , "A", "B", "C", "A" : desc')
    assert rec.attributes == ["A", "B", "C", "A"]


def test_attribute_space_after_comma_is_optional():
    assert parse_attributes(',"A", "B",  "C"') == ["A", "B"]


def test_malformed_attribute_quoting_is_skipped():
    assert parse_attributes(', "ok", "unterminated') == ["ok"]
    assert parse_attributes('plain, flags') == []
    assert parse_attributes("") == []


def test_missing_description_is_empty():
    rec = parse_cvar_line("host_map : de_dust : , \"sv\" :")
    assert rec is not None
    assert rec.description == ""
    assert rec.attributes == ["sv"]


def test_description_keeps_colons_and_padding_is_trimmed():
    rec = parse_cvar_line("cl_interp      : 0.1    : , \"a\"   : ratio: 2 : maybe")
    assert rec.name == "cl_interp"
    assert rec.default_value == "0.1"
    assert rec.attributes == ["a"]
    assert rec.description == "ratio: 2 : maybe"


def test_empty_default_value():
    rec = parse_cvar_line("host_map :          : , \"sv\" : Current map name.")
    assert rec.default_value == ""
    assert rec.description == "Current map name."


def test_empty_name_is_not_a_record():
    assert parse_cvar_line("   : 0 : , \"sv\" : nameless") is None


# Reference grammar for table rows, used to cross-check the delimiter scan on short lines
ROW_RE = re.compile(r"^(.*?)\s*: (.*?)\s*: (.*?)\s*:(?: (.*)|)$")

TRICKY_ROWS = [
    "a : b : c : d",
    "a:b : c : d : e",
    "a : b : c:d : e",
    "a : b : c :d",
    "a : b : c :d :",
    "a : b : c :d : e : f",
    "a : b : c",
    "a : b :",
    "a :  : x :",
    "x : : : ",
    "x : :: y",
    "a : b : , \"f:g\" : h",
    " a  :  b  :  c  :  d ",
    "a : b : c :\t",
    ": : : ",
    "no delimiters here",
]


def _reference_row(line):
    m = ROW_RE.match(line)
    if not m or not m.group(1).strip():
        return None
    return (m.group(1).strip(), m.group(2).strip(), parse_attributes(m.group(3).strip()), m.group(4) or "")


@pytest.mark.parametrize("line", TRICKY_ROWS + load_fixture_lines())
def test_row_split_agrees_with_reference_grammar(line):
    rec = parse_cvar_line(line)
    got = None if rec is None else (rec.name, rec.default_value, rec.attributes, rec.description)
    assert got == _reference_row(line)


def test_split_columns_keeps_padding():
    assert split_columns("a  :  b  :  c  :  d ") == ("a  ", " b  ", " c  ", " d ")


@pytest.mark.parametrize(
    "line",
    [
        "a : b : " + " " * 200_000 + "x",
        " " * 200_000 + ": b : c : d",
        "a : b : " + ":x" * 100_000,
        "a" + " :" * 100_000,
    ],
)
def test_long_lines_parse_in_linear_time(line):
    start = time.perf_counter()
    extract_cvars(line + "\n" + line)
    assert time.perf_counter() - start < 1.0


def test_crlf_line_endings():
    result = extract_cvars(EXAMPLE.replace("\n", "\r\n"))
    assert [r.description for r in result.records] == ["Allow cheats", "Field of view"]
    assert result.expected_count == 2


def test_noise_lines_are_ignored():
    noise = "\n".join([
        "",
        "cvar list",
        "--------------",
        "   ",
        "Unknown command \"foo\"",
        "total convars/concommands",
        "12 total convars",
        " 3 total convars/concommands",
    ])
    result = extract_cvars(noise)
    assert result.records == []
    assert result.expected_count is None
    assert result.count_mismatch() is None


def test_duplicate_count_is_fatal():
    text = EXAMPLE + "2 total convars/concommands\n"
    with pytest.raises(DuplicateCountError):
        extract_cvars(text)


def test_count_mismatch_direction():
    fewer = extract_cvars("a : 1 : : x\n3 total convars/concommands")
    more = extract_cvars("a : 1 : : x\nb : 2 : : y\n1 total convars/concommands")
    assert fewer.count_mismatch() == -1
    assert more.count_mismatch() == 1


def main(argv=None):
    import sys
    import pytest as _pytest
    from pathlib import Path as _Path
    test_path = str(_Path(__file__).resolve())
    opts = [test_path]
    rc = _pytest.main(opts if argv is None else argv + [test_path])
    sys.exit(rc)


if __name__ == "__main__":
    main()
