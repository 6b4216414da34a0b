"""
Basic example of using Prolly on a data stream.

This example feeds a simulated stream of page views through a Bloom filter,
a Count-Min Sketch and a HyperLogLog, then shares a Count-Min Sketch between
threads through a SketchServer.
"""

import random
import threading

from prolly import (
    BloomFilter,
    CountMinSketch,
    HyperLogLog,
    false_positive_rate,
    optimal_number_of_hashes,
    start_count_min_sketch_server,
)

HASHES = ["md5", "sha", "sha256"]


def simulated_stream(n, seed=42):
    """Yield n page names with a skewed popularity distribution."""
    rng = random.Random(seed)
    pages = [f"/page/{i}" for i in range(2000)]
    weights = [1.0 / (rank + 1) for rank in range(len(pages))]
    for page in rng.choices(pages, weights=weights, k=n):
        yield page


def demonstrate_bloom_filter():
    """Track which pages have been seen."""
    print("\n=== Bloom Filter Demo ===")

    size, expected = 20000, 2000
    print(f"Optimal hash count for m={size}, n={expected}: "
          f"{optimal_number_of_hashes(size, expected)}")
    print(f"Expected false positive rate with {len(HASHES)} hashes: "
          f"{false_positive_rate(size, expected, len(HASHES)):.4f}")

    seen = BloomFilter(size, HASHES)
    for page in simulated_stream(5000):
        seen = seen.update(page)

    print(f"'/page/0' possibly seen: {seen.possible_member('/page/0')}")
    print(f"'/never/visited' possibly seen: {seen.possible_member('/never/visited')}")
    print(f"Bits set: {seen.bits_set()} of {seen.size}")


def demonstrate_count_min_sketch():
    """Estimate how often each page was viewed."""
    print("\n=== Count-Min Sketch Demo ===")

    views = CountMinSketch(3, 500, HASHES)
    exact = {}
    for page in simulated_stream(5000):
        views = views.update(page)
        exact[page] = exact.get(page, 0) + 1

    for page in ["/page/0", "/page/1", "/page/10", "/page/100"]:
        print(f"{page}: estimated {views.get_count(page)}, exact {exact.get(page, 0)}")

    # Merge with a sketch of a second, independent stream
    other = CountMinSketch(3, 500, HASHES)
    for page in simulated_stream(1000, seed=7):
        other = other.update(page)
    merged = views.union(other)
    print(f"Merged total count: {merged.total_count}")


def demonstrate_hyperloglog():
    """Estimate the number of distinct pages viewed."""
    print("\n=== HyperLogLog Demo ===")

    distinct = HyperLogLog(256)
    pages = set()
    for page in simulated_stream(5000):
        distinct = distinct.update(page)
        pages.add(page)

    print(f"Estimated distinct pages: {distinct.count()}, exact: {len(pages)}")
    print(f"Standard error: {distinct.error_bounds()['relative_error']:.2%}")


def demonstrate_server():
    """Share one Count-Min Sketch between several producer threads."""
    print("\n=== Sketch Server Demo ===")

    with start_count_min_sketch_server(3, 500) as server:
        threads = [
            threading.Thread(
                target=lambda seed=seed: [
                    server.update(page) for page in simulated_stream(500, seed=seed)
                ]
            )
            for seed in range(4)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        state = server.get_state()
        print(f"Updates applied: {state.items_processed}")
        print(f"'/page/0' estimated views: {server.query('/page/0')}")


if __name__ == "__main__":
    demonstrate_bloom_filter()
    demonstrate_count_min_sketch()
    demonstrate_hyperloglog()
    demonstrate_server()
