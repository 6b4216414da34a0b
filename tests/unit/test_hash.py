"""
Unit tests for hashing functions.
"""

import hashlib
import unittest
from collections import Counter

from prolly.algorithms.bloom import BloomFilter
from prolly.algorithms.countmin import CountMinSketch
from prolly.algorithms.hyperloglog import HyperLogLog
from prolly.core.hash import (
    DEFAULT_HASH_FNS,
    HASH_FUNCTIONS,
    canonical_bytes,
    compute_index,
    fnv1a_32,
    hash_value,
    murmurhash3_32,
    resolve_hash_name,
    resolve_hash_names,
)


class TestCanonicalBytes(unittest.TestCase):
    """Test cases for value normalisation."""

    def test_strings_are_utf8(self):
        self.assertEqual(canonical_bytes("hi"), b"hi")
        self.assertEqual(canonical_bytes("café"), "café".encode("utf-8"))

    def test_bytes_pass_through(self):
        self.assertEqual(canonical_bytes(b"\x00\xff"), b"\x00\xff")

    def test_other_values_use_str(self):
        """Non-string values hash like their string form."""
        self.assertEqual(canonical_bytes(12345), b"12345")
        self.assertEqual(canonical_bytes(3.5), b"3.5")
        self.assertEqual(canonical_bytes(None), b"None")
        for name in HASH_FUNCTIONS:
            self.assertEqual(hash_value(name, 12345), hash_value(name, "12345"))

    def test_lone_surrogates(self):
        """Strings with unpaired surrogates still normalise and hash."""
        self.assertEqual(canonical_bytes("\udcff"), b"\xed\xb3\xbf")
        self.assertEqual(canonical_bytes("a\udcffb"), b"a\xed\xb3\xbfb")
        self.assertEqual(canonical_bytes(["\udcff"]), b"['\\udcff']")
        self.assertEqual(
            hash_value("md5", "\udcff"),
            int.from_bytes(hashlib.md5(b"\xed\xb3\xbf").digest(), "big"),
        )

        value = "\udcff"
        bloom = BloomFilter(20).update(value)
        self.assertTrue(bloom.possible_member(value))

        cms = CountMinSketch(3, 5).update(value, count=2)
        self.assertEqual(cms.get_count(value), 2)

        hll = HyperLogLog(16).update(value)
        self.assertEqual(hll.registers.count(0), 15)


class TestHashRegistry(unittest.TestCase):
    """Test cases for the named hash function registry."""

    def test_digests_are_big_endian_integers(self):
        for name, algorithm in [("md5", "md5"), ("sha", "sha1"), ("sha256", "sha256")]:
            expected = int.from_bytes(hashlib.new(algorithm, b"hi").digest(), "big")
            self.assertEqual(hash_value(name, "hi"), expected)

    def test_reference_indexes(self):
        """Known indexes for "hi" used throughout the sketch tests."""
        self.assertEqual(compute_index("sha", "hi", 20), 6)
        self.assertEqual(compute_index("md5", "hi", 20), 7)
        self.assertEqual(compute_index("sha256", "hi", 20), 16)
        self.assertEqual(compute_index("sha", "hi", 5), 1)
        self.assertEqual(compute_index("md5", "hi", 5), 2)
        self.assertEqual(compute_index("sha256", "hi", 5), 1)

    def test_index_in_bounds(self):
        for name in HASH_FUNCTIONS:
            for bound in (1, 2, 7, 20, 1000):
                for value in ("a", "b", 42, b"raw", (1, 2)):
                    index = compute_index(name, value, bound)
                    self.assertGreaterEqual(index, 0)
                    self.assertLess(index, bound)

    def test_murmur_and_fnv_registered(self):
        self.assertEqual(hash_value("murmur3", "hello world"), murmurhash3_32("hello world"))
        self.assertEqual(hash_value("fnv1a", "hello world"), fnv1a_32("hello world"))

    def test_resolve_aliases(self):
        self.assertEqual(resolve_hash_name("sha1"), "sha")
        self.assertEqual(resolve_hash_name("SHA256"), "sha256")
        self.assertEqual(resolve_hash_name("murmurhash3"), "murmur3")
        self.assertEqual(resolve_hash_names(["md5", "sha1"]), ("md5", "sha"))
        self.assertEqual(resolve_hash_names(DEFAULT_HASH_FNS), ("md5", "sha", "sha256"))

    def test_resolve_rejects_bad_names(self):
        with self.assertRaises(ValueError):
            resolve_hash_name("crc32")
        with self.assertRaises(TypeError):
            resolve_hash_name(len)
        with self.assertRaises(ValueError):
            resolve_hash_names([])
        with self.assertRaises(TypeError):
            resolve_hash_names("md5")


class TestHashFunctions(unittest.TestCase):
    """Test cases for the pure Python 32-bit hashes."""

    def test_reproducibility(self):
        """Test that both hashes produce consistent results for the same input."""
        test_cases = ["hello world", "python", "", "a" * 100, 123, 3.14, (1, 2, 3)]

        for input_value in test_cases:
            self.assertEqual(murmurhash3_32(input_value), murmurhash3_32(input_value))
            self.assertEqual(fnv1a_32(input_value), fnv1a_32(input_value))

    def test_different_inputs(self):
        """Test that MurmurHash3 produces different hashes for different inputs."""
        inputs = ["hello", "Hello", "hello ", "world", 123, 123.0, (1, 2), (2, 1)]

        hashes = [murmurhash3_32(x) for x in inputs]
        self.assertEqual(len(set(hashes)), len(inputs))

    def test_seed_changes_output(self):
        input_value = "test seed"
        murmur = {murmurhash3_32(input_value, seed=s) for s in (0, 1, 42)}
        fnv = {fnv1a_32(input_value, seed=s) for s in (0, 1, 42)}
        self.assertEqual(len(murmur), 3)
        self.assertEqual(len(fnv), 3)

    def test_murmurhash3_distribution(self):
        """Test that MurmurHash3 has reasonably uniform distribution."""
        num_samples = 10000
        num_buckets = 10

        counter = Counter(murmurhash3_32(x) % num_buckets for x in range(num_samples))
        expected = num_samples / num_buckets

        # Statistical test: all buckets within 20% of expected
        for bucket, count in counter.items():
            self.assertGreaterEqual(
                count, expected * 0.8, f"MurmurHash3 bucket {bucket} has too few items"
            )
            self.assertLessEqual(
                count, expected * 1.2, f"MurmurHash3 bucket {bucket} has too many items"
            )

    def test_range(self):
        """Test that both hashes produce 32-bit values."""
        for input_value in ["test", 123, (1, 2, 3), "a" * 1000]:
            for fn in (murmurhash3_32, fnv1a_32):
                value = fn(input_value)
                self.assertIsInstance(value, int)
                self.assertGreaterEqual(value, 0)
                self.assertLessEqual(value, 0xFFFFFFFF)

    def test_murmurhash3_known_values(self):
        """Test MurmurHash3 against published reference values."""
        test_cases = [
            ("", 0, 0x00000000),
            ("", 1, 0x514E28B7),
            ("hello world", 0, 0x5E928F0F),
        ]

        for input_value, seed, expected in test_cases:
            value = murmurhash3_32(input_value, seed)
            self.assertEqual(
                value,
                expected,
                f"MurmurHash3 of '{input_value}' with seed {seed} should be "
                f"{expected:08x}, got {value:08x}",
            )

    def test_fnv1a_known_values(self):
        # Offset basis for empty input, published value for "a"
        self.assertEqual(fnv1a_32(""), 0x811C9DC5)
        self.assertEqual(fnv1a_32("a"), 0xE40C292C)


if __name__ == "__main__":
    unittest.main()
