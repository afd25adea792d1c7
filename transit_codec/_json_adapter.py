"""JSON adapter — the text ↔ generic tree boundary.

The codec itself only ever sees dict/list/str/int/float/bool/None trees.
This module turns text into such trees and back with the standard library
json module, and turns JSON syntax errors into MalformedWireData.

Output is compact (no spaces after separators) and keeps non-ASCII text as
is, which is how other Transit-JSON writers emit it.  NaN and the
infinities never reach the serializer (they travel as "~z" strings), so
allow_nan is off to catch any that slip through a custom handler.
"""

from __future__ import annotations

import codecs
import json
import re
from typing import IO, Any, Iterator, Union

from ._constants import CHUNK_SIZE
from ._errors import MalformedWireData

_WS = re.compile(r"[ \t\n\r]*")
_raw = json.JSONDecoder()


def parse_json(text: Union[str, bytes]) -> Any:
    """Parse one complete JSON document."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedWireData("JSON parse error: {}".format(e)) from e
    except UnicodeDecodeError as e:
        raise MalformedWireData("invalid UTF-8 in JSON input") from e


def serialize_json(tree: Any) -> str:
    try:
        return json.dumps(tree, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
    except ValueError as e:
        raise MalformedWireData("tree is not serializable as JSON: {}".format(e)) from e


# ── Streaming ─────────────────────────────────────────────────
#
# A stream is a sequence of top-level JSON values separated by optional
# whitespace.  We read whatever input is available, up to a chunk at a time,
# and peel complete values off the front of the buffer with raw_decode.  A
# bare number that reaches the end of the buffer is held back until more
# input (or EOF) arrives: "12" might still become "123", and "1e" "1e5".

_NUMBER_TAIL = re.compile(r"[0-9.eE+\-]*\Z")


def _may_grow(value: Any, rest: str) -> bool:
    """Whether more input could still extend a number parsed from the buffer."""
    return type(value) in (int, float) and _NUMBER_TAIL.match(rest) is not None


def iter_json_values(fp: IO, chunk_size: int = CHUNK_SIZE) -> Iterator[Any]:
    """Yield each top-level JSON value in `fp` as soon as it is complete.

    `fp` may be opened in text or binary mode; bytes are decoded as UTF-8.
    The generator does not read ahead while the caller holds a value.
    """
    read = getattr(fp, "read1", fp.read)
    utf8 = codecs.getincrementaldecoder("utf-8")()
    buf = ""
    eof = False
    while True:
        buf = buf[_WS.match(buf).end():]
        if buf:
            try:
                value, end = _raw.raw_decode(buf)
            except json.JSONDecodeError as e:
                if eof:
                    raise MalformedWireData("JSON parse error: {}".format(e)) from e
            else:
                if eof or not _may_grow(value, buf[end:]):
                    buf = buf[end:]
                    yield value
                    continue
        elif eof:
            return

        chunk = read(chunk_size)
        eof = not chunk
        if isinstance(chunk, bytes):
            try:
                chunk = utf8.decode(chunk, final=eof)
            except UnicodeDecodeError as e:
                raise MalformedWireData("invalid UTF-8 in JSON input") from e
        buf += chunk
