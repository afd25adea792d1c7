"""Error codes and the exception hierarchy.

Every exception carries a ``.code`` string so callers and tests can compare
against a stable identifier instead of a message.  All fatal kinds unwind
the single encode or decode call that raised them: the rolling cache is
order dependent, so nothing is skipped and resumed mid-document.
"""

from __future__ import annotations

from typing import Optional

# ── Error codes ──────────────────────────────────────────────
# Grep-friendly for cross-language tests.

ERR_UNSUPPORTED_TYPE: str = "ERR_UNSUPPORTED_TYPE"          # no write handler
ERR_MALFORMED_WIRE_DATA: str = "ERR_MALFORMED_WIRE_DATA"    # bad tag array, cmap, rep
ERR_CACHE_MISS: str = "ERR_CACHE_MISS"                      # code never assigned
ERR_UNKNOWN_TAG: str = "ERR_UNKNOWN_TAG"                    # strict decoding only
ERR_CAPABILITY_MISMATCH: str = "ERR_CAPABILITY_MISMATCH"    # key has no string form


class TransitError(Exception):
    """Base exception for encode and decode failures.

    The `.code` attribute is one of the ERR_* strings above.
    """

    code: str = "ERR_TRANSIT"

    def __init__(self, msg: str = "", code: Optional[str] = None) -> None:
        if code is not None:
            self.code = code
        super().__init__(msg or self.code)


class UnsupportedType(TransitError):
    """No write handler matches the exact runtime type of a value."""

    code = ERR_UNSUPPORTED_TYPE


class MalformedWireData(TransitError):
    """The parsed tree cannot be a valid Transit document."""

    code = ERR_MALFORMED_WIRE_DATA


class CacheMiss(MalformedWireData):
    """A cache code refers to a slot that was never assigned."""

    code = ERR_CACHE_MISS


class UnknownTag(TransitError):
    """Raised for an unrecognised tag, only when decoding with strict_tags."""

    code = ERR_UNKNOWN_TAG

    def __init__(self, tag: str) -> None:
        super().__init__("no read handler for tag {!r}".format(tag))
        self.tag = tag


class CapabilityMismatch(TransitError):
    """A map key has no single-character string form.

    The encoder catches this and writes the map in composite form; it never
    reaches callers of the public API.
    """

    code = ERR_CAPABILITY_MISMATCH
