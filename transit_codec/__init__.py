"""transit_codec — Transit-JSON encoding and decoding for Python.

Round-trip rich values (keywords, symbols, sets, timestamps, UUIDs, URIs,
decimals, byte arrays, maps with any keys, and custom tagged types) through
plain JSON, readable by any other Transit-JSON implementation.

Quick start:
    >>> from transit_codec import Keyword, dumps, loads
    >>> dumps([Keyword("color"), Keyword("color"), Keyword("color")])
    '["~:color","^0","^0"]'
    >>> dumps({Keyword("name"): "x", Keyword("tags"): frozenset([7])})
    '{"~:name":"x","~:tags":["~#set",[7]]}'
    >>> loads('[{"~:name":"x"},{"^0":"y"}]')
    [{:name: 'x'}, {:name: 'y'}]

Repeated map keys, keywords and symbols of four characters or more are
written once and then replaced by short cache codes ("^0", "^1", ...).
"""

from __future__ import annotations

from typing import IO, Any, Optional

from ._cache import ReadCache, WriteCache, decode_code, encode_code, is_cache_code, is_cacheable
from ._constants import CACHE_SIZE, MIN_SIZE_CACHEABLE
from ._decoder import Decoder
from ._encoder import Encoder
from ._errors import (
    ERR_CACHE_MISS,
    ERR_CAPABILITY_MISMATCH,
    ERR_MALFORMED_WIRE_DATA,
    ERR_UNKNOWN_TAG,
    ERR_UNSUPPORTED_TYPE,
    CacheMiss,
    CapabilityMismatch,
    MalformedWireData,
    TransitError,
    UnknownTag,
    UnsupportedType,
)
from ._handlers import HandlerRegistry
from ._json_adapter import parse_json, serialize_json
from ._marshal import Reader, Writer
from ._types import URI, Keyword, Link, Symbol, TaggedValue, frozendict

__version__ = "0.8.0"

__all__ = [
    # Public API functions
    "dumps",
    "dump",
    "loads",
    "load",
    # Codec pieces
    "Encoder",
    "Decoder",
    "Reader",
    "Writer",
    "HandlerRegistry",
    "WriteCache",
    "ReadCache",
    "encode_code",
    "decode_code",
    "is_cache_code",
    "is_cacheable",
    "CACHE_SIZE",
    "MIN_SIZE_CACHEABLE",
    # Value model
    "Keyword",
    "Symbol",
    "URI",
    "Link",
    "TaggedValue",
    "frozendict",
    # Exceptions
    "TransitError",
    "UnsupportedType",
    "MalformedWireData",
    "CacheMiss",
    "UnknownTag",
    "CapabilityMismatch",
    # Error codes
    "ERR_UNSUPPORTED_TYPE",
    "ERR_MALFORMED_WIRE_DATA",
    "ERR_CACHE_MISS",
    "ERR_UNKNOWN_TAG",
    "ERR_CAPABILITY_MISMATCH",
]


# ── Text API ──────────────────────────────────────────────────

def dumps(value: Any, *, verbose: bool = False,
          registry: Optional[HandlerRegistry] = None) -> str:
    """Encode `value` as one Transit-JSON document."""
    return serialize_json(Encoder(registry, verbose=verbose).encode(value))


def loads(text: Any, *, registry: Optional[HandlerRegistry] = None,
          strict_tags: bool = False) -> Any:
    """Decode one Transit-JSON document (str or UTF-8 bytes)."""
    return Decoder(registry, strict_tags=strict_tags).decode(parse_json(text))


# ── Stream API ────────────────────────────────────────────────

def dump(value: Any, fp: IO, *, verbose: bool = False,
         registry: Optional[HandlerRegistry] = None) -> None:
    """Write `value` to a text stream as one newline-terminated document."""
    Writer(fp, registry, verbose=verbose).write(value)


def load(fp: IO, *, registry: Optional[HandlerRegistry] = None,
         strict_tags: bool = False) -> Any:
    """Read one document from a text or binary stream."""
    return Reader(registry, strict_tags=strict_tags).read(fp)
