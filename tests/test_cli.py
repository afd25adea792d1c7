"""Tests for the command-line interface."""

from __future__ import annotations

import io
import os
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from transit_codec import __version__
from transit_codec._cli import main


def _run(argv, stdin_text=None):
    """Run main() and return (exit_code, stdout, stderr)."""
    out, err = io.StringIO(), io.StringIO()
    code = 0
    old_stdin = sys.stdin
    if stdin_text is not None:
        sys.stdin = io.TextIOWrapper(io.BytesIO(stdin_text.encode("utf-8")), encoding="utf-8")
    try:
        with redirect_stdout(out), redirect_stderr(err):
            main(argv)
    except SystemExit as e:
        code = e.code
    finally:
        sys.stdin = old_stdin
    return code, out.getvalue(), err.getvalue()


class TestCli(unittest.TestCase):
    def setUp(self):
        fd, self.path = tempfile.mkstemp(suffix=".json")
        os.close(fd)

    def tearDown(self):
        os.unlink(self.path)

    def _write(self, text):
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(text)

    def test_version(self):
        code, out, _ = _run(["version"])
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "transit-codec {}".format(__version__))

    def test_no_command(self):
        code, _, _ = _run([])
        self.assertEqual(code, 1)

    def test_decode_file(self):
        self._write('["~:abcd","^0"]\n["~#set",[1]]\n')
        code, out, _ = _run(["decode", "--input", self.path])
        self.assertEqual(code, 0)
        self.assertEqual(out.splitlines(), ["[:abcd, :abcd]", "frozenset({1})"])

    def test_decode_stdin(self):
        code, out, _ = _run(["decode"], stdin_text='{"a":1}')
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "{'a': 1}")

    def test_recode(self):
        self._write('["^ ","~:abcd",1] {"~#set":[1]}')
        code, out, _ = _run(["recode", "--input", self.path])
        self.assertEqual(code, 0)
        self.assertEqual(out, '{"~:abcd":1}\n["~#set",[1]]\n')

    def test_recode_verbose(self):
        self._write('["~:abcd","^0","~m0"]')
        code, out, _ = _run(["recode", "--verbose", "--input", self.path])
        self.assertEqual(code, 0)
        self.assertEqual(out, '["~:abcd","~:abcd","~t1970-01-01T00:00:00.000Z"]\n')

    def test_error_exit_code(self):
        self._write('["^0"]')
        code, _, err = _run(["decode", "--input", self.path])
        self.assertEqual(code, 2)
        self.assertIn("[ERR_CACHE_MISS]", err)

    def test_strict_tags(self):
        self._write('["~#point",[1]]')
        code, _, err = _run(["decode", "--strict-tags", "--input", self.path])
        self.assertEqual(code, 2)
        self.assertIn("[ERR_UNKNOWN_TAG]", err)


if __name__ == "__main__":
    unittest.main()
