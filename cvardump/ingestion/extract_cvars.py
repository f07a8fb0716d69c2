from typing import List, Optional, Tuple

from cvardump.constants import (
    ATTRIBUTE_RE,
    COLUMN_DELIMITER,
    DESCRIPTION_PREFIX,
    LAST_COLUMN_DELIMITER,
    SUMMARY_LINE_RE,
)
from cvardump.models import CvarRecord, ExtractionResult


class DuplicateCountError(ValueError):
    """The "total convars/concommands" line was found more than once."""


def split_lines(text: str) -> List[str]:
    # Newline-delimited, tolerating CRLF
    return [ln[:-1] if ln.endswith("\r") else ln for ln in text.split("\n")]


def parse_attributes(column: str) -> List[str]:
    """Collect the quoted flag names of an attribute column, in order.
    Unquoted or badly quoted entries contribute nothing.
    """
    return [m.group(1) for m in ATTRIBUTE_RE.finditer(column)]


def split_columns(line: str) -> Optional[Tuple[str, str, str, str]]:
    """Split a table row into name, default, attribute column and description.

    Each column ends at the earliest delimiter that still lets the rest of the
    row parse: `: ` after the name and the default, then `:` after the
    attributes followed by either end of line or a space and the description.
    Columns 1-3 come back untrimmed.
    """
    first = line.find(COLUMN_DELIMITER)
    if first < 0:
        return None
    second = line.find(COLUMN_DELIMITER, first + len(COLUMN_DELIMITER))
    if second < 0:
        return None
    attrs_start = second + len(COLUMN_DELIMITER)

    third = line.find(LAST_COLUMN_DELIMITER, attrs_start)
    while third >= 0:
        end = third + len(LAST_COLUMN_DELIMITER)
        if end == len(line):
            description = ""
        elif line.startswith(DESCRIPTION_PREFIX, end):
            description = line[end + len(DESCRIPTION_PREFIX):]
        else:
            # A colon inside the attribute column
            third = line.find(LAST_COLUMN_DELIMITER, end)
            continue
        return line[:first], line[first + len(COLUMN_DELIMITER):second], line[attrs_start:third], description
    return None


def parse_cvar_line(line: str) -> Optional[CvarRecord]:
    columns = split_columns(line)
    if columns is None:
        return None
    name, default_value, attrs, description = columns
    name = name.strip()
    if not name:
        return None
    return CvarRecord(
        name=name,
        default_value=default_value.strip(),
        attributes=parse_attributes(attrs.strip()),
        description=description,
    )


def parse_summary_line(line: str) -> Optional[int]:
    m = SUMMARY_LINE_RE.match(line)
    if not m:
        return None
    # Always a non-empty run of ASCII digits
    return int(m.group(1))


# --- Main entry point ---

def extract_cvars(text: str) -> ExtractionResult:
    """Parse the output of `cvarlist` into cvar records.

    Lines that are neither a table row nor the summary count (banners, column
    headers, blank lines) are ignored. Raises DuplicateCountError if the summary
    count appears twice, since the input is then not a single cvarlist dump.
    """
    records: List[CvarRecord] = []
    expected_count: Optional[int] = None

    for line in split_lines(text):
        rec = parse_cvar_line(line)
        if rec is not None:
            records.append(rec)
            continue

        count = parse_summary_line(line)
        if count is None:
            continue
        if expected_count is not None:
            raise DuplicateCountError(
                f"found cvar count twice ({expected_count} and {count})"
            )
        expected_count = count

    return ExtractionResult(records=records, expected_count=expected_count)
