"""
Centralized constants for the cvarlist text format, the CSV output schema and
the RCON wire protocol.
These constants are imported by the extractor, the serializer and the input
sources so that format details are not guessed in multiple places.
"""
from __future__ import annotations

import re
from typing import List

# cvarlist table format
# A row looks like: `name   : default : , "flag", "flag" : description`
COLUMN_DELIMITER: str = ": "
# The attribute column is closed by a bare colon (no trailing space required)
LAST_COLUMN_DELIMITER: str = ":"
SUMMARY_SUFFIX: str = "total convars/concommands"
# Separates the attribute column from the description; optional when there is no description
DESCRIPTION_PREFIX: str = " "

SUMMARY_LINE_RE = re.compile(r"^(\d+) " + re.escape(SUMMARY_SUFFIX) + r"$", re.ASCII)
# Matches individual attributes from the attribute column, e.g. `, "cheat"`
ATTRIBUTE_RE = re.compile(r', ?"(.*?)"')
ATTRIBUTE_JOINER: str = ","

# CSV output schema
# Note: rows are written as name, attributes, default, description (see DESIGN.md).
# Labels are plain CSV fields, i.e. `name,default,attributes,description`, not
# the comma-space form `name, default, attributes, description`.
CVAR_CSV_HEADER: List[str] = [
    "name",
    "default",
    "attributes",
    "description",
]
CSV_DELIMITER: str = ","
CSV_QUOTE: str = '"'
CSV_LINE_TERMINATOR: str = "\n"
# Fields containing any of these are quoted, line breaks of either kind included
CSV_SPECIAL_CHARS: str = ",\"\r\n"
CSV_ENCODING: str = "utf-8"

# Source RCON protocol
RCON_DEFAULT_PORT: int = 27015
RCON_DEFAULT_COMMAND: str = "cvarlist"
RCON_DEFAULT_TIMEOUT: float = 10.0
SERVERDATA_AUTH: int = 3
SERVERDATA_AUTH_RESPONSE: int = 2
SERVERDATA_EXECCOMMAND: int = 2
SERVERDATA_RESPONSE_VALUE: int = 0
# id + type + two null terminators
RCON_MIN_PACKET_SIZE: int = 10
RCON_MAX_BODY_SIZE: int = 4096
RCON_AUTH_FAILED_ID: int = -1
