"""Unit tests for the rolling cache.

Code form, eligibility, the write/read mirror, reset at capacity, and the
errors a reader raises for codes no writer could have produced.
"""

from __future__ import annotations

import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from transit_codec import (
    CACHE_SIZE,
    ERR_CACHE_MISS,
    CacheMiss,
    MalformedWireData,
    ReadCache,
    WriteCache,
    decode_code,
    encode_code,
    is_cache_code,
    is_cacheable,
)


# ── Code form ─────────────────────────────────────────────────

class TestCodeForm(unittest.TestCase):
    def test_first_code(self):
        self.assertEqual(encode_code(0), "^0")

    def test_last_single_digit_code(self):
        self.assertEqual(encode_code(43), "^[")

    def test_first_two_digit_code(self):
        self.assertEqual(encode_code(44), "^10")

    def test_last_code(self):
        self.assertEqual(encode_code(CACHE_SIZE - 1), "^[[")

    def test_capacity(self):
        self.assertEqual(CACHE_SIZE, 1936)

    def test_decode_inverts_encode(self):
        for i in (0, 1, 43, 44, 45, 100, 1000, CACHE_SIZE - 1):
            with self.subTest(i=i):
                self.assertEqual(decode_code(encode_code(i)), i)

    def test_codes_are_unique(self):
        codes = {encode_code(i) for i in range(CACHE_SIZE)}
        self.assertEqual(len(codes), CACHE_SIZE)

    def test_map_marker_is_not_a_code(self):
        """"^ " heads an array-map and is never assigned to content."""
        self.assertFalse(is_cache_code("^ "))
        self.assertNotIn("^ ", {encode_code(i) for i in range(CACHE_SIZE)})

    def test_lone_caret_is_not_a_code(self):
        self.assertFalse(is_cache_code("^"))

    def test_out_of_alphabet_digit(self):
        with self.assertRaises(CacheMiss) as ctx:
            decode_code("^!")
        self.assertEqual(ctx.exception.code, ERR_CACHE_MISS)

    def test_too_many_digits(self):
        with self.assertRaises(CacheMiss):
            decode_code("^000")


# ── Eligibility ───────────────────────────────────────────────

class TestEligibility(unittest.TestCase):
    def test_short_strings_never_cached(self):
        self.assertFalse(is_cacheable("abc", as_map_key=True))
        self.assertFalse(is_cacheable("~:a"))

    def test_map_keys_cached(self):
        self.assertTrue(is_cacheable("name", as_map_key=True))

    def test_plain_values_not_cached(self):
        self.assertFalse(is_cacheable("name"))
        self.assertFalse(is_cacheable("~~:escaped"))
        self.assertFalse(is_cacheable("~i12345"))

    def test_tags_keywords_symbols_cached(self):
        for s in ("~#set", "~:name", "~$sym1"):
            with self.subTest(s=s):
                self.assertTrue(is_cacheable(s))


# ── Write side ────────────────────────────────────────────────

class TestWriteCache(unittest.TestCase):
    def test_first_sighting_is_literal(self):
        cache = WriteCache()
        self.assertEqual(cache.encode("~:color"), "~:color")

    def test_repeats_become_codes(self):
        cache = WriteCache()
        out = [cache.encode("~:color") for _ in range(3)]
        self.assertEqual(out, ["~:color", "^0", "^0"])

    def test_codes_in_first_seen_order(self):
        cache = WriteCache()
        out = [cache.encode(s, as_map_key=True)
               for s in ("name", "kind", "name", "size", "kind", "size")]
        self.assertEqual(out, ["name", "kind", "^0", "size", "^1", "^2"])

    def test_ineligible_strings_pass_through(self):
        cache = WriteCache()
        self.assertEqual(cache.encode("name"), "name")
        self.assertEqual(cache.encode("name"), "name")
        self.assertEqual(len(cache), 0)

    def test_key_then_value_with_same_text(self):
        """A string cached as a key is not looked up when it is a plain value."""
        cache = WriteCache()
        cache.encode("name", as_map_key=True)
        self.assertEqual(cache.encode("name"), "name")

    def test_reset_when_full(self):
        cache = WriteCache()
        for i in range(CACHE_SIZE):
            cache.encode("key{:05d}".format(i), as_map_key=True)
        self.assertEqual(len(cache), CACHE_SIZE)
        self.assertEqual(cache.encode("overflow", as_map_key=True), "overflow")
        self.assertEqual(len(cache), 1)
        self.assertEqual(cache.encode("overflow", as_map_key=True), "^0")
        # Entries from before the reset are gone.
        self.assertEqual(cache.encode("key00000", as_map_key=True), "key00000")
        self.assertEqual(cache.encode("key00000", as_map_key=True), "^1")


# ── Read side ─────────────────────────────────────────────────

class TestReadCache(unittest.TestCase):
    def test_mirrors_write_cache(self):
        w, r = WriteCache(), ReadCache()
        stream = ["name", "kind", "name", "size", "kind", "size", "name"]
        emitted = [w.encode(s, as_map_key=True) for s in stream]
        self.assertEqual([r.decode(t, as_map_key=True) for t in emitted], stream)

    def test_unassigned_code(self):
        with self.assertRaises(CacheMiss) as ctx:
            ReadCache().decode("^0")
        self.assertEqual(ctx.exception.code, ERR_CACHE_MISS)

    def test_cache_miss_is_malformed_data(self):
        with self.assertRaises(MalformedWireData):
            ReadCache().decode("^5")

    def test_codes_resolve_in_any_position(self):
        r = ReadCache()
        r.decode("name", as_map_key=True)
        self.assertEqual(r.decode("^0"), "name")

    def test_ineligible_tokens_not_stored(self):
        r = ReadCache()
        r.decode("abc", as_map_key=True)
        r.decode("plain value")
        self.assertEqual(len(r), 0)

    def test_reset_at_same_event_as_writer(self):
        w, r = WriteCache(), ReadCache()
        stream = ["~:k{:05d}".format(i) for i in range(CACHE_SIZE + 10)]
        stream += stream[:20] + stream[-20:]
        emitted = [w.encode(s) for s in stream]
        self.assertEqual([r.decode(t) for t in emitted], stream)


if __name__ == "__main__":
    unittest.main()
