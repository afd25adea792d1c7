"""Transit-JSON conformance test suite.

Runs every vector in conformance/transit_vectors.json: decode the input,
re-encode it, and compare the compact text byte for byte (or compare the
error code for vectors that must fail).

Usage:
    python tests/test_conformance.py [--vectors-dir DIR]
    python -m pytest tests/test_conformance.py -v
    TRANSIT_VECTORS_DIR=conformance python tests/test_conformance.py
"""

from __future__ import annotations

import argparse
import json
import os
import sys
import unittest
from typing import Any, Dict, List, Optional, Tuple

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from transit_codec import TransitError, dumps, loads
from transit_codec._json_adapter import serialize_json

# ── Locate conformance data ───────────────────────────────────

_VECTORS_FILE = "transit_vectors.json"
_VECTORS_DIR: Optional[str] = os.environ.get("TRANSIT_VECTORS_DIR", None)


def _find_vectors_dir() -> str:
    if _VECTORS_DIR:
        return _VECTORS_DIR
    candidates = [
        os.path.join(os.path.dirname(__file__), "..", "conformance"),
        os.path.join(os.path.dirname(__file__), "conformance"),
    ]
    for d in candidates:
        if os.path.isfile(os.path.join(d, _VECTORS_FILE)):
            return d
    raise FileNotFoundError(
        "Cannot find conformance vectors. Set TRANSIT_VECTORS_DIR or --vectors-dir."
    )


def _load_vectors() -> List[dict]:
    path = os.path.join(_find_vectors_dir(), _VECTORS_FILE)
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)["vectors"]


def _run_vector(vec: dict) -> Dict[str, Any]:
    """Execute one vector.  Returns {"output": text} or {"err": code}."""
    text = vec["input_text"] if "input_text" in vec else json.dumps(vec["input"])
    try:
        return {"output": dumps(loads(text))}
    except TransitError as e:
        return {"err": e.code}


def _expected(vec: dict) -> Dict[str, Any]:
    exp = vec["expected"]
    if "output" in exp:
        return {"output": serialize_json(exp["output"])}
    return {"err": exp["err"]}


# ── unittest integration ──────────────────────────────────────

class ConformanceTests(unittest.TestCase):
    """Dynamically generated: one test method per vector."""
    pass


def _make_test(vec: dict):
    def test_fn(self: unittest.TestCase) -> None:
        got = _run_vector(vec)
        exp = _expected(vec)
        self.assertEqual(got, exp,
                         "{}: got {} expected {}".format(vec["test_id"], got, exp))
    return test_fn


# Attach test methods at import time.
try:
    for _vec in _load_vectors():
        _tid = _vec["test_id"]
        _fn = _make_test(_vec)
        _fn.__name__ = "test_{}".format(_tid)
        _fn.__qualname__ = "ConformanceTests.test_{}".format(_tid)
        setattr(ConformanceTests, "test_{}".format(_tid), _fn)
except FileNotFoundError:
    pass


# ── Standalone CLI runner ─────────────────────────────────────

def main() -> None:
    global _VECTORS_DIR

    parser = argparse.ArgumentParser(description="Transit-JSON conformance runner")
    parser.add_argument("--vectors-dir", default=None,
                        help="Directory with {}".format(_VECTORS_FILE))
    args, _remaining = parser.parse_known_args()

    if args.vectors_dir:
        _VECTORS_DIR = args.vectors_dir

    passed = 0
    failures: List[Tuple[str, dict, dict]] = []

    for vec in _load_vectors():
        got, exp = _run_vector(vec), _expected(vec)
        if got == exp:
            passed += 1
        else:
            failures.append((vec["test_id"], got, exp))

    total = passed + len(failures)
    print("CONFORMANCE: {}/{} PASS".format(passed, total))
    for tid, got, exp in failures:
        print("  FAIL {}: got={} expected={}".format(tid, got, exp))

    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
