from typing import BinaryIO, Iterable, List

import pandas as pd

from cvardump.constants import (
    ATTRIBUTE_JOINER,
    CSV_DELIMITER,
    CSV_ENCODING,
    CSV_LINE_TERMINATOR,
    CSV_QUOTE,
    CSV_SPECIAL_CHARS,
    CVAR_CSV_HEADER,
)
from cvardump.models import CvarRecord


def record_row(rec: CvarRecord) -> List[str]:
    # Field order differs from the header labels for columns 2-3; kept as-is for
    # compatibility with existing dumps.
    return [
        rec.name,
        ATTRIBUTE_JOINER.join(rec.attributes),
        rec.default_value,
        rec.description,
    ]


def records_to_frame(records: Iterable[CvarRecord]) -> pd.DataFrame:
    rows = [record_row(r) for r in records]
    return pd.DataFrame(rows, columns=CVAR_CSV_HEADER, dtype=object)


def csv_field(value: str) -> str:
    """Quote a field if it holds a delimiter, a quote, `\\r` or `\\n`."""
    if any(ch in value for ch in CSV_SPECIAL_CHARS):
        return CSV_QUOTE + value.replace(CSV_QUOTE, CSV_QUOTE * 2) + CSV_QUOTE
    return value


def csv_line(fields: Iterable[str]) -> bytes:
    return (CSV_DELIMITER.join(csv_field(f) for f in fields) + CSV_LINE_TERMINATOR).encode(CSV_ENCODING)


def write_cvar_csv(records: Iterable[CvarRecord], sink: BinaryIO) -> None:
    """Write the header row and one row per record to a binary file object.

    Rows are rendered field by field rather than with DataFrame.to_csv: the csv
    writer only quotes line breaks that appear in its line terminator, so a
    lone `\\r` would otherwise go out unquoted.
    The sink is left open; write errors propagate to the caller.
    """
    df = records_to_frame(records)
    sink.write(csv_line(df.columns))
    for row in df.itertuples(index=False, name=None):
        sink.write(csv_line(row))
