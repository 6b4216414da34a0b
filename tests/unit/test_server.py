"""
Unit tests for the serialising sketch server.
"""

import threading
import unittest
from concurrent.futures import ThreadPoolExecutor, wait

from prolly.algorithms.bloom import BloomFilter
from prolly.algorithms.countmin import CountMinSketch
from prolly.algorithms.hyperloglog import HyperLogLog
from prolly.server import SketchServer, start_count_min_sketch_server


class TestSketchServer(unittest.TestCase):
    """Test cases for SketchServer."""

    def test_count_min_sketch_server(self):
        with start_count_min_sketch_server(3, 5, ["sha", "md5", "sha256"]) as server:
            self.assertIsNone(server.update("hi"))
            server.update("hi")
            server.update("hi")

            self.assertEqual(server.query("hi"), 3)
            state = server.get_state()
            self.assertIsInstance(state, CountMinSketch)
            self.assertEqual(state.get_count("hi"), 3)

    def test_default_hashes(self):
        with start_count_min_sketch_server(3, 10) as server:
            self.assertEqual(server.get_state().hash_fns, ("md5", "sha", "sha256"))

    def test_construction_errors_raise_immediately(self):
        with self.assertRaises(ValueError):
            start_count_min_sketch_server(2, 5, ["md5", "sha", "sha256"])
        with self.assertRaises(TypeError):
            SketchServer({"not": "a sketch"})

    def test_snapshots_are_independent(self):
        """A state handed out earlier is not changed by later updates."""
        with SketchServer(BloomFilter(100, ["md5", "sha"])) as server:
            before = server.get_state()
            server.update("apple")
            after = server.get_state()

            self.assertFalse(before.possible_member("apple"))
            self.assertTrue(after.possible_member("apple"))
            self.assertTrue(server.query("apple"))

    def test_call_runs_against_current_state(self):
        with SketchServer(HyperLogLog(64, "md5")) as server:
            server.update("hi")
            self.assertEqual(server.call(lambda hll: hll.registers[59]), 5)
            self.assertEqual(server.query(), 92930)

    def test_failed_update_keeps_state(self):
        with start_count_min_sketch_server(3, 5) as server:
            server.update("x", count=2)
            with self.assertRaises(ValueError):
                server.update("x", count=-1)
            self.assertEqual(server.query("x"), 2)

    def test_concurrent_updates_are_serialised(self):
        """Updates from many threads are all applied, none lost."""
        n_threads = 8
        per_thread = 50

        with start_count_min_sketch_server(3, 50) as server:
            barrier = threading.Barrier(n_threads)

            def worker():
                barrier.wait()
                for _ in range(per_thread):
                    server.update("shared")

            with ThreadPoolExecutor(max_workers=n_threads) as pool:
                futures = [pool.submit(worker) for _ in range(n_threads)]
                wait(futures)
                for future in futures:
                    future.result()

            state = server.get_state()
            self.assertEqual(state.get_count("shared"), n_threads * per_thread)
            self.assertEqual(state.items_processed, n_threads * per_thread)

    def test_stop(self):
        server = start_count_min_sketch_server(3, 5)
        server.update("hi")
        self.assertTrue(server.running)

        server.stop()
        server.stop()  # idempotent
        self.assertFalse(server.running)

        with self.assertRaises(RuntimeError):
            server.update("hi")
        with self.assertRaises(RuntimeError):
            server.get_state()


if __name__ == "__main__":
    unittest.main()
