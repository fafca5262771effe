import threading
import unittest

from orggate.org_cache import CacheRecord, OrgCache


class TestOrgCache(unittest.TestCase):
    def test_miss_returns_none(self):
        cache = OrgCache()
        self.assertIsNone(cache.get("192.0.0.0/8"))
        self.assertEqual(len(cache), 0)

    def test_first_write_wins(self):
        cache = OrgCache()
        first = cache.set("192.0.0.0/8", "Acme", True)
        second = cache.set("192.0.0.0/8", "Other Corp", False)

        self.assertEqual(first, CacheRecord("Acme", True))
        self.assertEqual(second, first)
        self.assertEqual(cache.get("192.0.0.0/8"), CacheRecord("Acme", True))
        self.assertEqual(len(cache), 1)

    def test_concurrent_writers_keep_one_value(self):
        cache = OrgCache()
        barrier = threading.Barrier(16)
        results = []

        def writer(i):
            barrier.wait()
            results.append(cache.set("198.51.100.7", f"org-{i}", i % 2 == 0))

        threads = [threading.Thread(target=writer, args=(i,)) for i in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        stored = cache.get("198.51.100.7")
        self.assertEqual(len(cache), 1)
        self.assertTrue(all(r == stored for r in results))


if __name__ == "__main__":
    unittest.main()
