"""Transit-JSON wire constants — marker characters, cache geometry, integer bounds.

These values are shared by every Transit implementation reading or writing
the same byte stream.  They are not tuning knobs: changing any of them
produces output that other implementations will misread without complaint.
"""

from __future__ import annotations

__format_version__ = "transit-json 0.8"

# ── Marker characters ────────────────────────────────────────
# ESC starts every tagged or quoted string ("~:kw", "~i42", "~~literal").
# SUB starts every cache code ("^0", "^1A").
# RES is reserved by the format; user strings starting with it are escaped.
ESC: str = "~"
SUB: str = "^"
RES: str = "`"
TAG: str = ESC + "#"

# Head of an array that holds a map as alternating keys and values.
# Written by other Transit-JSON implementations; this one only reads it.
MAP_AS_ARRAY: str = SUB + " "

# Tag wrapping a top-level scalar so every document root is a JSON container.
QUOTE: str = "'"

# ── Rolling cache geometry ───────────────────────────────────
# Codes are SUB plus one or two characters from a 44-symbol alphabet that
# starts at "0".  Two digits give 44 * 44 slots; when every slot is taken
# the cache empties and numbering restarts at "^0".
MIN_SIZE_CACHEABLE: int = 4
CACHE_CODE_DIGITS: int = 44
BASE_CHAR_IDX: int = 48
CACHE_SIZE: int = CACHE_CODE_DIGITS * CACHE_CODE_DIGITS

# Prefixes of non-key strings worth caching: extension tags, keywords, symbols.
CACHEABLE_PREFIXES = (TAG, ESC + ":", ESC + "$")

# ── Integer bounds ───────────────────────────────────────────
# JSON readers in other languages hold numbers as IEEE doubles, so integers
# beyond 2**53 - 1 travel as "~i" strings.  Beyond signed 64-bit they take
# the arbitrary-precision tag "n".
JSON_INT_MAX: int = 2**53 - 1
JSON_INT_MIN: int = -(2**53 - 1)
INT64_MIN: int = -(2**63)
INT64_MAX: int = 2**63 - 1

# ── Timestamps ───────────────────────────────────────────────
# Verbose timestamps carry complete milliseconds, truncated, never rounded.
TIME_FORMAT: str = "%Y-%m-%dT%H:%M:%S"

# ── Streaming ────────────────────────────────────────────────
CHUNK_SIZE: int = 8192
