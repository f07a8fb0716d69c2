import sys
from typing import Optional


def fetch_text(path: Optional[str] = None) -> str:
    """Read a saved cvarlist dump from a file, or from stdin when no path is given.

    Useful for clients, where the console output has to be copied out by hand.
    """
    if path is None:
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()
