#!/usr/bin/env python3
# tools/roundtrip_runner.py
#
# Round-trip and cache invariants (property tests) for transit_codec.
#
# This runner:
# - generates random values over the whole value model within limits
# - checks decode(encode(v)) == v in compact and verbose modes
# - checks that compact output never carries more literal copies of a
#   cacheable string than the cache allows, and that verbose output has no codes
#
# Exit code:
#   0 -> all checks passed
#   1 -> invariant violation

import json, os, random, string, sys, uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from transit_codec import (  # noqa: E402
    URI, Encoder, Keyword, Link, Symbol, TaggedValue, dumps, is_cache_code, loads,
)

SEED = int(os.environ.get("TRANSIT_SEED", "1337"))
TRIALS = int(os.environ.get("TRANSIT_TRIALS", "2000"))
MAX_GEN_DEPTH = int(os.environ.get("TRANSIT_GEN_MAX_DEPTH", "5"))
MAX_KEYS = int(os.environ.get("TRANSIT_GEN_MAX_KEYS", "6"))
MAX_LIST = int(os.environ.get("TRANSIT_GEN_MAX_LIST", "6"))
MAX_STR = int(os.environ.get("TRANSIT_GEN_MAX_STR", "12"))

random.seed(SEED)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
# Mostly plain text, with the marker characters mixed in often enough to
# exercise escaping at the start of strings.
_ALPHABET = string.ascii_letters + string.digits + "~^`#:$ é"


def rand_text() -> str:
    return "".join(random.choice(_ALPHABET) for _ in range(random.randint(0, MAX_STR)))


def rand_name() -> str:
    # Small name pool so keywords and keys repeat and the cache is exercised.
    return random.choice(["a", "id", "name", "status", "created", "owner", rand_text() or "x"])


def rand_scalar() -> Any:
    r = random.randint(0, 15)
    if r == 0:
        return None
    if r == 1:
        return random.random() < 0.5
    if r == 2:
        return random.randint(-1000, 1000)
    if r == 3:
        return random.choice([2**53, -(2**53), 2**63 - 1, -(2**63), 2**64, -(2**80)])
    if r == 4:
        return random.uniform(-1e6, 1e6)
    if r == 5:
        return Decimal(random.randint(-10**6, 10**6)) / 100
    if r == 6:
        return _EPOCH + timedelta(milliseconds=random.randint(-10**12, 4 * 10**12))
    if r == 7:
        return uuid.UUID(int=random.getrandbits(128))
    if r == 8:
        return URI("https://example.com/" + rand_text())
    if r == 9:
        return bytes(random.getrandbits(8) for _ in range(random.randint(0, 16)))
    if r == 10:
        return Keyword(rand_name())
    if r == 11:
        return Symbol(rand_name())
    if r == 12:
        return TaggedValue(random.choice(["x", "point", "unit"]), rand_text())
    return rand_text()


def rand_key() -> Any:
    r = random.random()
    if r < 0.5:
        return rand_name()
    if r < 0.8:
        return Keyword(rand_name())
    if r < 0.9:
        return random.randint(-5, 5)
    return (random.randint(0, 3), rand_name())  # forces a composite map


def gen_value(depth: int) -> Any:
    if depth >= MAX_GEN_DEPTH:
        return rand_scalar()
    r = random.random()
    if r < 0.3:
        d: Dict[Any, Any] = {}
        for _ in range(random.randint(0, MAX_KEYS)):
            d[rand_key()] = gen_value(depth + 1)
        return d
    if r < 0.55:
        return [gen_value(depth + 1) for _ in range(random.randint(0, MAX_LIST))]
    if r < 0.62:
        return frozenset(rand_scalar() for _ in range(random.randint(0, MAX_LIST)))
    if r < 0.65:
        return Link(rand_text(), rand_name(), render=random.choice([None, "link", "image"]))
    return rand_scalar()


def walk_strings(tree: Any):
    if isinstance(tree, str):
        yield tree
    elif isinstance(tree, list):
        for x in tree:
            yield from walk_strings(x)
    elif isinstance(tree, dict):
        for k, v in tree.items():
            yield k
            yield from walk_strings(v)


def fail(label: str, value: Any, detail: str) -> None:
    print("VIOLATION:", label)
    print("VALUE :", repr(value)[:4000])
    print("DETAIL:", detail[:4000])
    raise SystemExit(1)


def main() -> None:
    for trial in range(TRIALS):
        value = gen_value(0)

        # I1: compact round trip
        text = dumps(value)
        back = loads(text)
        if back != value:
            fail("compact round trip (trial {})".format(trial), value, text)

        # I2: verbose round trip
        vtext = dumps(value, verbose=True)
        if loads(vtext) != value:
            fail("verbose round trip (trial {})".format(trial), value, vtext)

        # I3: encoding is deterministic
        if dumps(value) != text:
            fail("deterministic output (trial {})".format(trial), value, text)

        # I4: verbose output carries no cache codes
        vtree = json.loads(vtext)
        codes = [s for s in walk_strings(vtree) if is_cache_code(s)]
        if codes:
            fail("verbose cache codes (trial {})".format(trial), value, repr(codes))

        # I5: every code in compact output resolves (decoding succeeded) and
        # no cacheable keyword is written literally twice within capacity
        tree = Encoder().encode(value)
        seen = set()
        for s in walk_strings(tree):
            if s.startswith(("~:", "~$", "~#")) and len(s) >= 4:
                if s in seen:
                    fail("literal repeated (trial {})".format(trial), value, s)
                seen.add(s)

    print("ROUNDTRIP: {} trials PASS (seed {})".format(TRIALS, SEED))


if __name__ == "__main__":
    main()
