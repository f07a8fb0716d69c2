# cvardump/models.py

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class CvarRecord:
    """
    One row of the cvarlist table.

    - name: cvar or command name (never empty)
    - default_value: default value column, may be ""
    - attributes: flag names in the order they appear, duplicates kept
    - description: help text, "" when the row has none
    """
    name: str
    default_value: str
    attributes: List[str] = field(default_factory=list)
    description: str = ""


@dataclass
class ExtractionResult:
    records: List[CvarRecord] = field(default_factory=list)
    # count reported by the "N total convars/concommands" line, if any
    expected_count: Optional[int] = None

    def count_mismatch(self) -> Optional[int]:
        """-1 / 0 / 1 when fewer / as many / more records than reported, None without a count."""
        if self.expected_count is None:
            return None
        found = len(self.records)
        return (found > self.expected_count) - (found < self.expected_count)
