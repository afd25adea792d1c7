"""Rolling cache — position-addressed string compression for one document.

The writer replaces the second and later occurrences of a cacheable string
with a short code; the reader rebuilds the same table while it walks the
same tree in the same order, so it can turn each code back into the string.

Neither side stores anything the other has to be told about.  The table is
addressed by position (the Nth cacheable string gets code N), which is why
both caches must reset at the same event: when the table holds CACHE_SIZE
entries, the next new string empties it and takes code "^0" again.

One instance serves exactly one encode or decode pass.  Never share one
between documents, or between threads.
"""

from __future__ import annotations

import logging
from typing import Dict, List

from ._constants import (
    BASE_CHAR_IDX,
    CACHE_CODE_DIGITS,
    CACHE_SIZE,
    CACHEABLE_PREFIXES,
    MAP_AS_ARRAY,
    MIN_SIZE_CACHEABLE,
    SUB,
)
from ._errors import CacheMiss

logger = logging.getLogger(__name__)


# ── Code form ─────────────────────────────────────────────────

def is_cacheable(s: str, as_map_key: bool = False) -> bool:
    """Whether `s` takes part in the cache.

    Map keys of at least MIN_SIZE_CACHEABLE characters always do.  Other
    strings only when they are tags, keywords or symbols, the values that
    repeat across a document.
    """
    if len(s) < MIN_SIZE_CACHEABLE:
        return False
    return as_map_key or s.startswith(CACHEABLE_PREFIXES)


def is_cache_code(s: str) -> bool:
    """Whether `s` has the lexical form of a cache code."""
    return len(s) > 1 and s[0] == SUB and s != MAP_AS_ARRAY


def encode_code(index: int) -> str:
    """Cache index → code token: "^0".."^[" then "^00".."^[[".

    Indices below CACHE_CODE_DIGITS take one digit, the rest two.
    """
    hi, lo = divmod(index, CACHE_CODE_DIGITS)
    if hi == 0:
        return SUB + chr(lo + BASE_CHAR_IDX)
    return SUB + chr(hi + BASE_CHAR_IDX) + chr(lo + BASE_CHAR_IDX)


def decode_code(code: str) -> int:
    """Code token → cache index.  Raises CacheMiss on a token no writer emits."""
    digits = [ord(ch) - BASE_CHAR_IDX for ch in code[1:]]
    if len(digits) not in (1, 2) or any(d < 0 or d >= CACHE_CODE_DIGITS for d in digits):
        raise CacheMiss("malformed cache code {!r}".format(code))
    if len(digits) == 1:
        return digits[0]
    return digits[0] * CACHE_CODE_DIGITS + digits[1]


# ── Write side ────────────────────────────────────────────────

class WriteCache:
    """Encoder half: string → code."""

    def __init__(self) -> None:
        self._codes: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._codes)

    def encode(self, s: str, as_map_key: bool = False) -> str:
        """Return the token to emit for `s`.

        First sighting since the last reset: record `s` and emit it verbatim.
        Later sightings: emit its code.  Non-cacheable strings are returned
        untouched and never looked up.
        """
        if not is_cacheable(s, as_map_key):
            return s
        code = self._codes.get(s)
        if code is not None:
            return code
        if len(self._codes) == CACHE_SIZE:
            logger.debug("write cache full at %d entries, resetting", CACHE_SIZE)
            self._codes.clear()
        self._codes[s] = encode_code(len(self._codes))
        return s


# ── Read side ─────────────────────────────────────────────────

class ReadCache:
    """Decoder half: code → string.  Mirrors WriteCache step for step."""

    def __init__(self) -> None:
        self._strings: List[str] = []

    def __len__(self) -> int:
        return len(self._strings)

    def decode(self, token: str, as_map_key: bool = False) -> str:
        """Resolve a token read off the wire to the string the writer saw.

        A code is looked up; a literal cacheable string is recorded under the
        next index, exactly where the writer recorded it.
        """
        if is_cache_code(token):
            index = decode_code(token)
            if index >= len(self._strings):
                raise CacheMiss(
                    "cache code {!r} refers to unassigned slot {} ({} assigned)".format(
                        token, index, len(self._strings)))
            return self._strings[index]
        if is_cacheable(token, as_map_key):
            if len(self._strings) == CACHE_SIZE:
                logger.debug("read cache full at %d entries, resetting", CACHE_SIZE)
                self._strings.clear()
            self._strings.append(token)
        return token
