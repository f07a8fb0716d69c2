# Input sources for cvarlist text
# Each module should expose:
# - fetch_text(...) -> str   # the complete, raw output of `cvarlist`
