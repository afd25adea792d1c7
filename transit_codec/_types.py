"""Value model types that have no native Python counterpart.

None, bool, str, int, float, Decimal, datetime, UUID, bytes, list, dict and
set are used as-is.  The classes here cover keywords, symbols, URIs, links,
hashable maps, and the generic TaggedValue that carries any extension type
this side does not understand.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

LINK_RENDER_VALUES = ("link", "image")


@dataclass(frozen=True)
class Keyword:
    """Interned symbolic name, written ``~:name``."""

    name: str

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return ":" + self.name


@dataclass(frozen=True)
class Symbol:
    """Symbolic identifier, written ``~$name``."""

    name: str

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return "$" + self.name


@dataclass(frozen=True)
class URI:
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Link:
    """Hypermedia link with the fixed fields of the ``link`` tag.

    ``render`` is either "link", "image", or absent.
    """

    href: str
    rel: str
    name: Optional[str] = None
    render: Optional[str] = None
    prompt: Optional[str] = None

    def __post_init__(self) -> None:
        if self.render is not None and self.render not in LINK_RENDER_VALUES:
            raise ValueError("link render must be 'link' or 'image', got {!r}".format(self.render))

    def to_dict(self) -> dict:
        return {
            "href": self.href,
            "rel": self.rel,
            "name": self.name,
            "render": self.render,
            "prompt": self.prompt,
        }


@dataclass(frozen=True)
class TaggedValue:
    """A value of a type with no local handler: the wire tag plus its rep.

    Decoding an unknown tag produces one of these, and encoding it writes the
    same tag and rep back out, so data passes through untouched.
    """

    tag: str
    rep: Any


class frozendict(dict):
    """Hashable dict, used wherever a decoded map must act as a key or set member."""

    def __hash__(self) -> int:  # type: ignore[override]
        return hash(frozenset(self.items()))

    def _immutable(self, *args: Any, **kwargs: Any) -> None:
        raise TypeError("frozendict is immutable")

    __setitem__ = _immutable
    __delitem__ = _immutable
    clear = _immutable
    pop = _immutable
    popitem = _immutable
    setdefault = _immutable
    update = _immutable

    def __repr__(self) -> str:
        return "frozendict({})".format(dict.__repr__(self))


def freeze(value: Any) -> Any:
    """Return a hashable equivalent of a decoded value.

    Lists become tuples, dicts become frozendicts, sets become frozensets.
    Scalars and already-hashable values come back unchanged.
    """
    if isinstance(value, list):
        return tuple(freeze(v) for v in value)
    if isinstance(value, frozendict):
        return value
    if isinstance(value, dict):
        return frozendict((freeze(k), freeze(v)) for k, v in value.items())
    if isinstance(value, set):
        return frozenset(freeze(v) for v in value)
    if isinstance(value, TaggedValue):
        rep = freeze(value.rep)
        return value if rep is value.rep else TaggedValue(value.tag, rep)
    return value
