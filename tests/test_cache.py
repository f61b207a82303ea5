import threading
import unittest
from concurrent.futures import ThreadPoolExecutor

from blocktext.cache import Cache


class TestCache(unittest.TestCase):

    def test_get_missing(self):
        cache = Cache()
        self.assertIsNone(cache.get('a'))
        self.assertEqual(cache.get('a', 7), 7)
        self.assertEqual(cache.misses, 2)

    def test_insert_first_wins(self):
        cache = Cache()
        self.assertEqual(cache.insert('a', 1), 1)
        self.assertEqual(cache.insert('a', 2), 1)
        self.assertEqual(cache.get('a'), 1)
        self.assertEqual(len(cache), 1)
        self.assertIn('a', cache)

    def test_put_replaces(self):
        cache = Cache(max_entries=2)
        cache.insert('a', 1)
        cache.insert('b', 2)
        self.assertEqual(cache.put('a', 10), 10)
        self.assertEqual(cache.get('a'), 10)
        cache.insert('c', 3)
        self.assertEqual(sorted(cache.keys()), ['a', 'c'])

    def test_get_or_insert_calls_factory_once(self):
        cache = Cache()
        calls = []

        def factory():
            calls.append(1)
            return object()

        first = cache.get_or_insert('k', factory)
        second = cache.get_or_insert('k', factory)
        self.assertIs(first, second)
        self.assertEqual(len(calls), 1)
        self.assertEqual(cache.hits, 1)

    def test_bounded_evicts_least_recently_used(self):
        cache = Cache(max_entries=2)
        cache.insert('a', 1)
        cache.insert('b', 2)
        cache.get('a')
        cache.insert('c', 3)
        self.assertEqual(sorted(cache.keys()), ['a', 'c'])
        self.assertNotIn('b', cache)

    def test_unbounded_never_evicts(self):
        cache = Cache()
        for i in range(100):
            cache.insert(i, str(i))
        self.assertEqual(len(cache), 100)
        self.assertEqual(list(cache)[:3], [0, 1, 2])

    def test_invalid_max_entries(self):
        with self.assertRaises(ValueError):
            Cache(max_entries=0)

    def test_clear(self):
        cache = Cache()
        cache.insert('a', 1)
        cache.get('a')
        cache.clear()
        self.assertEqual(len(cache), 0)
        self.assertEqual(cache.hits, 0)

    def test_concurrent_get_or_insert_agrees(self):
        cache = Cache()
        barrier = threading.Barrier(8)

        def worker(_):
            barrier.wait()
            return cache.get_or_insert('shared', object)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(worker, range(8)))

        self.assertEqual(len(cache), 1)
        stored = cache.get('shared')
        self.assertTrue(all(r is stored for r in results))


if __name__ == "__main__":
    unittest.main()
