"""Decoder — parsed JSON tree → runtime value.

The inverse of the encoder, walking the tree in the same order so the
ReadCache sees every cacheable string exactly when the WriteCache did.

String forms recognised after cache resolution:

    "~~x", "~^x", "~`x"   escaped literal, drop the leading ESC
    "~#tag"               extension tag, only valid at the head of a pair
    "~Xrest"              ground value, read handler X applied to "rest"
    anything else         plain string

Containers:

    ["~#tag", rep]        extension value
    ["^ ", k, v, ...]     map written as an array
    {"~#tag": rep}        extension value, verbose form
    {k: v, ...}           map, keys read through the cache as map keys
    [v, ...]              array
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ._cache import ReadCache
from ._constants import ESC, MAP_AS_ARRAY, RES, SUB, TAG
from ._errors import MalformedWireData, UnknownTag
from ._handlers import HandlerRegistry
from ._types import freeze


class _Tag:
    """A "~#tag" string seen on the wire, waiting for its rep."""

    __slots__ = ("tag",)

    def __init__(self, tag: str) -> None:
        self.tag = tag


class Decoder:
    """Turns one parsed tree back into a value.

    strict_tags: raise UnknownTag for tags with no read handler instead of
    returning a TaggedValue.
    """

    def __init__(self, registry: Optional[HandlerRegistry] = None, *,
                 strict_tags: bool = False) -> None:
        self.registry = registry if registry is not None else HandlerRegistry()
        self.strict_tags = strict_tags

    def decode(self, node: Any, cache: Optional[ReadCache] = None) -> Any:
        """Decode one document.  Pass `cache` only to continue a cache timeline."""
        if cache is None:
            cache = ReadCache()
        value = self._decode(node, cache, False)
        if isinstance(value, _Tag):
            raise MalformedWireData("tag {!r} with no representation".format(value.tag))
        return value

    # ── Dispatch ─────────────────────────────────────────────

    def _decode(self, node: Any, cache: ReadCache, as_map_key: bool) -> Any:
        if isinstance(node, str):
            return self._parse_string(cache.decode(node, as_map_key))
        if isinstance(node, dict):
            return self._decode_dict(node, cache)
        if isinstance(node, list):
            return self._decode_list(node, cache)
        return node

    def _decode_value(self, node: Any, cache: ReadCache) -> Any:
        """Decode a node in a position where a bare tag is not allowed."""
        value = self._decode(node, cache, False)
        if isinstance(value, _Tag):
            raise MalformedWireData("tag {!r} with no representation".format(value.tag))
        return value

    def _parse_string(self, s: str) -> Any:
        if len(s) < 2 or s[0] != ESC:
            return s
        marker = s[1]
        if marker in (ESC, SUB, RES):
            return s[1:]
        if marker == "#":
            return _Tag(s[2:])
        return self._from_rep(marker, s[2:])

    def _from_rep(self, tag: str, rep: Any) -> Any:
        if self.strict_tags and not self.registry.has_read_handler(tag):
            raise UnknownTag(tag)
        handler = self.registry.read_handler_for(tag)
        try:
            return handler.from_rep(rep)
        except (ValueError, TypeError, OverflowError) as e:
            raise MalformedWireData(
                "cannot read tag {!r} from rep {!r}: {}".format(tag, rep, e)) from e

    # ── Containers ───────────────────────────────────────────

    def _decode_list(self, node: List[Any], cache: ReadCache) -> Any:
        if not node:
            return []
        if node[0] == MAP_AS_ARRAY:
            return self._decode_pairs(node[1:], cache)
        head = self._decode(node[0], cache, False)
        if isinstance(head, _Tag):
            if len(node) != 2:
                raise MalformedWireData(
                    "tag {!r} needs exactly one representation, got {}".format(
                        head.tag, len(node) - 1))
            return self._decode_tagged(head.tag, node[1], cache)
        out = [head]
        for item in node[1:]:
            out.append(self._decode_value(item, cache))
        return out

    def _decode_dict(self, node: Dict[str, Any], cache: ReadCache) -> Any:
        out: Dict[Any, Any] = {}
        for k, v in node.items():
            key = self._decode(k, cache, True)
            if isinstance(key, _Tag):
                if len(node) != 1:
                    raise MalformedWireData(
                        "tag {!r} used as a key in a map of {} entries".format(key.tag, len(node)))
                return self._decode_tagged(key.tag, v, cache)
            out[key] = self._decode_value(v, cache)
        return out

    def _decode_pairs(self, items: List[Any], cache: ReadCache) -> Dict[Any, Any]:
        if len(items) % 2 != 0:
            raise MalformedWireData("array map has an odd number of entries")
        out: Dict[Any, Any] = {}
        for i in range(0, len(items), 2):
            key = self._decode(items[i], cache, True)
            if isinstance(key, _Tag):
                raise MalformedWireData("tag {!r} used as a map key".format(key.tag))
            out[freeze(key)] = self._decode_value(items[i + 1], cache)
        return out

    def _decode_tagged(self, tag: str, rep_node: Any, cache: ReadCache) -> Any:
        rep = self._decode_value(rep_node, cache)
        if tag == "cmap" and (not isinstance(rep, list) or len(rep) % 2 != 0):
            raise MalformedWireData("cmap needs an even-length array")
        return self._from_rep(tag, rep)
