"""Encoder — runtime value → JSON-ready tree.

Walks the value depth first.  Each value goes through its write handler:

  - native JSON ground types (nil, string, boolean, safe integer, finite
    float) are written as themselves;
  - other single-character tags become one string, ESC + tag + string_rep;
  - multi-character tags become ["~#tag", rep] (or {"~#tag": rep} in
    verbose mode);
  - arrays and maps are walked element by element.

Every string that reaches the output passes through the WriteCache in the
order it is emitted.  The decoder replays that order, so nothing may be
emitted out of sequence (keys before their values, tags before their reps).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ._cache import WriteCache
from ._constants import ESC, JSON_INT_MAX, JSON_INT_MIN, QUOTE, RES, SUB, TAG
from ._errors import CapabilityMismatch
from ._handlers import HandlerRegistry

logger = logging.getLogger(__name__)

_ESCAPED_PREFIXES = (ESC, SUB, RES)


def escape(s: str) -> str:
    """Prefix ESC to a user string that would otherwise read as a marker."""
    if s.startswith(_ESCAPED_PREFIXES):
        return ESC + s
    return s


class _NoCache:
    """Stand-in for verbose mode, where every string is written in full."""

    @staticmethod
    def encode(s: str, as_map_key: bool = False) -> str:
        return s


class Encoder:
    """Turns one value into a tree of dict/list/str/int/float/bool/None.

    verbose: write timestamps as ISO strings, extension values as
    single-entry maps, and never emit cache codes.
    """

    def __init__(self, registry: Optional[HandlerRegistry] = None, *,
                 verbose: bool = False) -> None:
        self.registry = registry if registry is not None else HandlerRegistry()
        self.verbose = verbose

    # ── Entry point ──────────────────────────────────────────

    def encode(self, value: Any) -> Any:
        """Encode one document.  A fresh cache is used for every call."""
        cache = _NoCache() if self.verbose else WriteCache()
        handler = self._handler(value)
        if len(handler.tag(value)) == 1:
            # JSON roots are containers; a bare scalar travels quoted.
            return self._emit_tagged(QUOTE, value, cache)
        return self._emit(value, cache, False)

    # ── Dispatch ─────────────────────────────────────────────

    def _handler(self, value: Any) -> Any:
        handler = self.registry.write_handler_for(value)
        if self.verbose:
            return getattr(handler, "verbose_handler", handler)
        return handler

    def _emit(self, value: Any, cache: Any, as_map_key: bool) -> Any:
        handler = self._handler(value)
        tag = handler.tag(value)

        if tag == "s":
            return cache.encode(escape(handler.rep(value)), as_map_key)
        if tag == "_" and not as_map_key:
            return None
        if tag == "?" and not as_map_key:
            return handler.rep(value)
        if tag == "i" and not as_map_key:
            i = handler.rep(value)
            if JSON_INT_MIN <= i <= JSON_INT_MAX:
                return i
        if tag == "d" and not as_map_key:
            return handler.rep(value)
        if tag == "array":
            return [self._emit(v, cache, False) for v in handler.rep(value)]
        if tag == "map":
            return self._emit_map(handler.rep(value), cache)

        if len(tag) == 1:
            s = handler.string_rep(value)
            if s is not None:
                return cache.encode(ESC + tag + s, as_map_key)
            # A single-character tag whose rep is not a string still has to
            # travel somehow; the tag/rep pair form carries it intact.
        return self._emit_tagged(tag, handler.rep(value), cache)

    def _emit_tagged(self, tag: str, rep: Any, cache: Any) -> Any:
        if self.verbose:
            return {cache.encode(TAG + tag, True): self._emit(rep, cache, False)}
        head = cache.encode(TAG + tag, False)
        return [head, self._emit(rep, cache, False)]

    # ── Maps ─────────────────────────────────────────────────

    def _key_string(self, key: Any) -> str:
        """The single string form of a map key, or CapabilityMismatch."""
        handler = self._handler(key)
        tag = handler.tag(key)
        if len(tag) != 1 or handler.string_rep(key) is None:
            raise CapabilityMismatch(
                "{} key cannot be a JSON object key".format(type(key).__name__))
        return tag

    def stringable_keys(self, m: Dict[Any, Any]) -> bool:
        """Whether every key of `m` can be written as a JSON object key."""
        try:
            for key in m:
                self._key_string(key)
        except CapabilityMismatch as e:
            logger.debug("writing map as cmap: %s", e)
            return False
        return True

    def _emit_map(self, m: Dict[Any, Any], cache: Any) -> Any:
        # Stringability is decided before anything is emitted so a
        # composite map never leaves half-written entries in the cache.
        if not self.stringable_keys(m):
            return self._emit_tagged("cmap", _flatten_items(m), cache)
        out: Dict[str, Any] = {}
        for k, v in m.items():
            key = self._emit(k, cache, True)
            out[key] = self._emit(v, cache, False)
        return out


def _flatten_items(m: Dict[Any, Any]) -> List[Any]:
    flat: List[Any] = []
    for k, v in m.items():
        flat.append(k)
        flat.append(v)
    return flat
