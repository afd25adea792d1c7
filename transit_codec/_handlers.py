"""Handler registry — runtime type ↔ wire tag.

A write handler answers three questions about a value:

    tag(v)         the wire tag ("s", ":", "set", "point", ...)
    rep(v)         the payload to write under that tag
    string_rep(v)  the string form used when v is a map key, or None

Single-character tags are ground types: they can be written as one string
("~:kw", "~i42") and so may serve as map keys.  Multi-character tags are
extension types, written as a tag/rep pair, and never appear as keys.

A read handler goes the other way: ``from_rep(rep)`` rebuilds the value
from its (already decoded) payload.

Lookup on the write side is by exact type, never isinstance: bool must not
land on the int handler, and a subclass gets no handler until one is
registered for it.
"""

from __future__ import annotations

import base64
import logging
import math
import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from ._constants import INT64_MAX, INT64_MIN, QUOTE, TIME_FORMAT
from ._errors import UnsupportedType
from ._types import URI, Keyword, Link, Symbol, TaggedValue, freeze, frozendict

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_WORD_MASK = (1 << 64) - 1


# ── Timestamp helpers ─────────────────────────────────────────

def _as_utc(t: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if t.tzinfo is None:
        return t.replace(tzinfo=timezone.utc)
    return t.astimezone(timezone.utc)


def _date_as_utc(d: date) -> datetime:
    return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)


def to_millis(t: datetime) -> int:
    """Milliseconds since the epoch, truncating any sub-millisecond part."""
    delta = t - _EPOCH
    return (delta.days * 86400 + delta.seconds) * 1000 + delta.microseconds // 1000


def from_millis(ms: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=ms)


def parse_iso8601(s: str) -> datetime:
    text = s[:-1] + "+00:00" if s.endswith("Z") else s
    return _as_utc(datetime.fromisoformat(text))


# ── Write handlers ────────────────────────────────────────────

class NilHandler:
    @staticmethod
    def tag(_):
        return "_"

    @staticmethod
    def rep(_):
        return None

    @staticmethod
    def string_rep(_):
        return ""


class KeywordHandler:
    @staticmethod
    def tag(_):
        return ":"

    @staticmethod
    def rep(k):
        return k.name

    @staticmethod
    def string_rep(k):
        return k.name


class SymbolHandler:
    @staticmethod
    def tag(_):
        return "$"

    @staticmethod
    def rep(s):
        return s.name

    @staticmethod
    def string_rep(s):
        return s.name


class StringHandler:
    @staticmethod
    def tag(_):
        return "s"

    @staticmethod
    def rep(s):
        return s

    @staticmethod
    def string_rep(s):
        return s


class BooleanHandler:
    @staticmethod
    def tag(_):
        return "?"

    @staticmethod
    def rep(b):
        return b

    @staticmethod
    def string_rep(b):
        return "t" if b else "f"


class IntHandler:
    """Signed 64-bit integers take "i"; anything wider takes "n"."""

    @staticmethod
    def tag(i):
        return "i" if INT64_MIN <= i <= INT64_MAX else "n"

    @staticmethod
    def rep(i):
        return i if INT64_MIN <= i <= INT64_MAX else str(i)

    @staticmethod
    def string_rep(i):
        return str(i)


class FloatHandler:
    """Finite floats are "d"; NaN and the infinities are "z"."""

    @staticmethod
    def tag(f):
        return "d" if math.isfinite(f) else "z"

    @staticmethod
    def rep(f):
        if math.isnan(f):
            return "NaN"
        if math.isinf(f):
            return "INF" if f > 0 else "-INF"
        return f

    @staticmethod
    def string_rep(f):
        r = FloatHandler.rep(f)
        return r if isinstance(r, str) else repr(r)


class DecimalHandler:
    @staticmethod
    def tag(_):
        return "f"

    @staticmethod
    def rep(d):
        return format(d, "f")

    @staticmethod
    def string_rep(d):
        return format(d, "f")


# datetime and date share everything except how the value becomes a UTC
# datetime, so one class takes that step as a parameter.  The verbose form
# wraps the same instance and swaps only tag and rep.

class TimestampHandler:
    def __init__(self, as_utc=_as_utc) -> None:
        self._as_utc = as_utc

    def tag(self, _):
        return "m"

    def rep(self, t):
        return to_millis(self._as_utc(t))

    def string_rep(self, t):
        return str(self.rep(t))

    @property
    def verbose_handler(self) -> "VerboseTimestampHandler":
        return VerboseTimestampHandler(self)


class VerboseTimestampHandler:
    def __init__(self, base: TimestampHandler) -> None:
        self._base = base

    def tag(self, _):
        return "t"

    def rep(self, t):
        u = self._base._as_utc(t)
        return "{}.{:03d}Z".format(u.strftime(TIME_FORMAT), u.microsecond // 1000)

    def string_rep(self, t):
        return self.rep(t)


class UuidHandler:
    @staticmethod
    def tag(_):
        return "u"

    @staticmethod
    def rep(u):
        return str(u)

    @staticmethod
    def string_rep(u):
        return str(u)


class UriHandler:
    @staticmethod
    def tag(_):
        return "r"

    @staticmethod
    def rep(u):
        return u.value

    @staticmethod
    def string_rep(u):
        return u.value


class BytesHandler:
    @staticmethod
    def tag(_):
        return "b"

    @staticmethod
    def rep(b):
        return base64.b64encode(bytes(b)).decode("ascii")

    @staticmethod
    def string_rep(b):
        return BytesHandler.rep(b)


class ArrayHandler:
    @staticmethod
    def tag(_):
        return "array"

    @staticmethod
    def rep(a):
        return a

    @staticmethod
    def string_rep(_):
        return None


class MapHandler:
    """Always tags "map"; the encoder switches to "cmap" when a key has no string form."""

    @staticmethod
    def tag(_):
        return "map"

    @staticmethod
    def rep(m):
        return m

    @staticmethod
    def string_rep(_):
        return None


class SetHandler:
    @staticmethod
    def tag(_):
        return "set"

    @staticmethod
    def rep(s):
        return list(s)

    @staticmethod
    def string_rep(_):
        return None


class LinkHandler:
    @staticmethod
    def tag(_):
        return "link"

    @staticmethod
    def rep(link):
        return link.to_dict()

    @staticmethod
    def string_rep(_):
        return None


class TaggedValueHandler:
    """Writes a TaggedValue back out under its own tag."""

    @staticmethod
    def tag(tv):
        return tv.tag

    @staticmethod
    def rep(tv):
        return tv.rep

    @staticmethod
    def string_rep(tv):
        if len(tv.tag) == 1 and isinstance(tv.rep, str):
            return tv.rep
        return None


# ── Read handlers ─────────────────────────────────────────────
# Each receives the rep after it has been decoded.  A rep that cannot be
# turned into a value raises ValueError, TypeError or OverflowError; the
# decoder reports that as MalformedWireData.

class NilReadHandler:
    @staticmethod
    def from_rep(_):
        return None


class StringReadHandler:
    @staticmethod
    def from_rep(s):
        return s


class KeywordReadHandler:
    @staticmethod
    def from_rep(s):
        return Keyword(s)


class SymbolReadHandler:
    @staticmethod
    def from_rep(s):
        return Symbol(s)


class BooleanReadHandler:
    @staticmethod
    def from_rep(rep):
        if isinstance(rep, bool):
            return rep
        if rep == "t":
            return True
        if rep == "f":
            return False
        raise ValueError("boolean rep must be 't' or 'f', got {!r}".format(rep))


class IntReadHandler:
    @staticmethod
    def from_rep(rep):
        if isinstance(rep, bool):
            raise TypeError("boolean is not an integer rep")
        return int(rep)


class FloatReadHandler:
    @staticmethod
    def from_rep(rep):
        return float(rep)


_SPECIAL_FLOATS = {"NaN": math.nan, "INF": math.inf, "-INF": -math.inf}


class SpecialFloatReadHandler:
    @staticmethod
    def from_rep(rep):
        if rep not in _SPECIAL_FLOATS:
            raise ValueError("unknown special number {!r}".format(rep))
        return _SPECIAL_FLOATS[rep]


class DecimalReadHandler:
    @staticmethod
    def from_rep(rep):
        if not isinstance(rep, str):
            raise TypeError("decimal rep must be a string")
        try:
            return Decimal(rep)
        except ArithmeticError as e:
            raise ValueError("bad decimal {!r}".format(rep)) from e


class MillisReadHandler:
    @staticmethod
    def from_rep(rep):
        return from_millis(int(rep))


class IsoTimestampReadHandler:
    @staticmethod
    def from_rep(rep):
        return parse_iso8601(rep)


class UuidReadHandler:
    """Accepts the canonical string or two signed 64-bit words (high, low)."""

    @staticmethod
    def from_rep(rep):
        if isinstance(rep, str):
            return uuid.UUID(rep)
        if isinstance(rep, (list, tuple)) and len(rep) == 2:
            hi, lo = (int(w) & _WORD_MASK for w in rep)
            return uuid.UUID(int=(hi << 64) | lo)
        raise ValueError("bad uuid rep {!r}".format(rep))


class UriReadHandler:
    @staticmethod
    def from_rep(rep):
        return URI(rep)


class BytesReadHandler:
    @staticmethod
    def from_rep(rep):
        return base64.b64decode(rep, validate=True)


class QuoteReadHandler:
    @staticmethod
    def from_rep(rep):
        return rep


class ListReadHandler:
    @staticmethod
    def from_rep(rep):
        return list(rep)


class SetReadHandler:
    @staticmethod
    def from_rep(rep):
        return frozenset(freeze(v) for v in rep)


class CmapReadHandler:
    @staticmethod
    def from_rep(rep):
        if not isinstance(rep, list) or len(rep) % 2 != 0:
            raise ValueError("cmap rep must be an even-length array")
        return {freeze(rep[i]): rep[i + 1] for i in range(0, len(rep), 2)}


class LinkReadHandler:
    @staticmethod
    def from_rep(rep):
        if not isinstance(rep, dict) or "href" not in rep or "rel" not in rep:
            raise ValueError("link rep needs href and rel")
        return Link(
            href=rep["href"],
            rel=rep["rel"],
            name=rep.get("name"),
            render=rep.get("render"),
            prompt=rep.get("prompt"),
        )


class TaggedValueReadHandler:
    """Fallback for tags with no registered handler."""

    def __init__(self, tag: str) -> None:
        self.tag = tag

    def from_rep(self, rep):
        return TaggedValue(self.tag, rep)


# ── Default tables ────────────────────────────────────────────

DEFAULT_WRITE_HANDLERS: Dict[type, Any] = {
    type(None): NilHandler(),
    Keyword: KeywordHandler(),
    Symbol: SymbolHandler(),
    str: StringHandler(),
    bool: BooleanHandler(),
    int: IntHandler(),
    float: FloatHandler(),
    Decimal: DecimalHandler(),
    datetime: TimestampHandler(),
    date: TimestampHandler(_date_as_utc),
    uuid.UUID: UuidHandler(),
    URI: UriHandler(),
    bytes: BytesHandler(),
    bytearray: BytesHandler(),
    list: ArrayHandler(),
    tuple: ArrayHandler(),
    dict: MapHandler(),
    frozendict: MapHandler(),
    set: SetHandler(),
    frozenset: SetHandler(),
    Link: LinkHandler(),
    TaggedValue: TaggedValueHandler(),
}

DEFAULT_READ_HANDLERS: Dict[str, Any] = {
    "_": NilReadHandler(),
    "s": StringReadHandler(),
    ":": KeywordReadHandler(),
    "$": SymbolReadHandler(),
    "?": BooleanReadHandler(),
    "i": IntReadHandler(),
    "n": IntReadHandler(),
    "d": FloatReadHandler(),
    "z": SpecialFloatReadHandler(),
    "f": DecimalReadHandler(),
    "m": MillisReadHandler(),
    "t": IsoTimestampReadHandler(),
    "u": UuidReadHandler(),
    "r": UriReadHandler(),
    "b": BytesReadHandler(),
    QUOTE: QuoteReadHandler(),
    "list": ListReadHandler(),
    "set": SetReadHandler(),
    "cmap": CmapReadHandler(),
    "link": LinkReadHandler(),
}


# ── Registry ──────────────────────────────────────────────────

class HandlerRegistry:
    """Per-codec handler tables, seeded with the built-ins.

    Register extensions once at start-up.  Lookups do not lock, so the
    registry may be shared by concurrent encoders and decoders only while
    nobody is registering.
    """

    def __init__(self,
                 write_handlers: Optional[Dict[type, Any]] = None,
                 read_handlers: Optional[Dict[str, Any]] = None,
                 default_write_handler: Any = None) -> None:
        self._write: Dict[type, Any] = dict(DEFAULT_WRITE_HANDLERS)
        self._read: Dict[str, Any] = dict(DEFAULT_READ_HANDLERS)
        if write_handlers:
            self._write.update(write_handlers)
        if read_handlers:
            self._read.update(read_handlers)
        self.default_write_handler = default_write_handler

    def register_write_handler(self, type_: type, handler: Any) -> None:
        """Handle values of exactly `type_` with `handler`; replaces any earlier one."""
        self._write[type_] = handler

    def register_read_handler(self, tag: str, handler: Any) -> None:
        """Rebuild values tagged `tag` with `handler`; replaces any earlier one."""
        if not tag:
            raise ValueError("tag must be a non-empty string")
        self._read[tag] = handler

    def write_handler_for(self, value: Any) -> Any:
        handler = self._write.get(type(value))
        if handler is not None:
            return handler
        if self.default_write_handler is not None:
            logger.debug("no handler for %s, using default", type(value).__name__)
            return self.default_write_handler
        raise UnsupportedType("no write handler for type {}".format(type(value).__name__))

    def has_read_handler(self, tag: str) -> bool:
        return tag in self._read

    def read_handler_for(self, tag: str) -> Any:
        """Handler for `tag`, or one that wraps the rep in a TaggedValue."""
        handler = self._read.get(tag)
        if handler is not None:
            return handler
        logger.debug("no read handler for tag %r, keeping it as TaggedValue", tag)
        return TaggedValueReadHandler(tag)
