import json
import os
import shutil
import tempfile
import unittest
from unittest import mock

from timenode.base import NULL_ADDRESS
from timenode.cache import DiscoveryCache, JsonFileBackend, MemoryBackend
from timenode_fakes import addr

A, B = addr(0xa), addr(0xb)


class TestDiscoveryCache(unittest.TestCase):

    def setUp(self):
        self.cache = DiscoveryCache()

    def test_set_and_get(self):
        self.cache.set(A, 150)

        self.assertTrue(self.cache.has(A))
        self.assertEqual(self.cache.get(A), 150)
        self.assertEqual(self.cache.len(), 1)
        self.assertEqual(len(self.cache), 1)

    def test_values_stored_as_text(self):
        self.cache.set(A, 150)

        self.assertEqual(self.cache.backend.get(A), "150")

    def test_unknown_address(self):
        self.assertFalse(self.cache.has(B))
        self.assertIsNone(self.cache.get(B))

    def test_keys_are_case_insensitive(self):
        mixed = "0x" + "Ab" * 20
        self.cache.set(mixed, 7)

        self.assertTrue(self.cache.has(mixed.lower()))
        self.assertEqual(self.cache.stored(), [mixed.lower()])

    def test_null_address_rejected(self):
        with self.assertRaises(ValueError):
            self.cache.set(NULL_ADDRESS, 1)

    def test_stored_is_a_snapshot(self):
        self.cache.set(A, 1)
        snapshot = self.cache.stored()
        self.cache.set(B, 2)

        self.assertEqual(snapshot, [A])

    def test_prune(self):
        self.cache.set(A, 100)
        self.cache.set(B, 300)

        removed = self.cache.prune(lambda window_start: window_start < 200)

        self.assertEqual(removed, 1)
        self.assertEqual(self.cache.stored(), [B])

    def test_stats(self):
        self.cache.set(A, 1)
        self.cache.has(A)
        self.cache.has(B)

        stats = self.cache.get_stats()
        self.assertEqual(stats['size'], 1)
        self.assertEqual(stats['hits'], 1)
        self.assertEqual(stats['misses'], 1)


class TestCacheTTL(unittest.TestCase):

    @mock.patch('timenode.cache.time.monotonic')
    def test_entries_expire(self, monotonic):
        monotonic.return_value = 1000.0
        cache = DiscoveryCache(ttl_seconds=60)
        cache.set(A, 1)
        cache.set(B, 2)

        monotonic.return_value = 1030.0
        self.assertTrue(cache.has(A))

        monotonic.return_value = 1061.0
        self.assertIsNone(cache.get(A))
        self.assertEqual(cache.cleanup_expired(), 1)
        self.assertEqual(cache.len(), 0)
        self.assertEqual(cache.get_stats()['evictions'], 2)

    def test_no_ttl_keeps_everything(self):
        cache = DiscoveryCache(MemoryBackend())
        cache.set(A, 1)

        self.assertEqual(cache.cleanup_expired(), 0)
        self.assertTrue(cache.has(A))


class TestJsonFileBackend(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.path = os.path.join(self.tmpdir, 'nested', 'cache.json')

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_survives_restart(self):
        cache = DiscoveryCache(JsonFileBackend(self.path))
        cache.set(A, 150)
        cache.flush()

        restarted = DiscoveryCache(JsonFileBackend(self.path))

        self.assertEqual(restarted.get(A), 150)
        with open(self.path) as f:
            self.assertEqual(json.load(f)['total_count'], 1)

    def test_writes_wait_for_flush(self):
        backend = JsonFileBackend(self.path)
        cache = DiscoveryCache(backend)
        for n in range(1, 4):
            cache.set(addr(n), n)

        self.assertFalse(os.path.exists(self.path))

        with mock.patch.object(backend, '_save_to_file', wraps=backend._save_to_file) as save:
            cache.flush()
            cache.flush()

        save.assert_called_once_with()
        self.assertEqual(DiscoveryCache(JsonFileBackend(self.path)).len(), 3)

    def test_delete_is_persisted(self):
        cache = DiscoveryCache(JsonFileBackend(self.path))
        cache.set(A, 1)
        cache.flush()
        cache.delete(A)
        cache.flush()

        self.assertEqual(DiscoveryCache(JsonFileBackend(self.path)).len(), 0)

    def test_corrupt_file_starts_fresh(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, 'w') as f:
            f.write("{not json")

        with self.assertLogs('timenode.cache', level='ERROR'):
            backend = JsonFileBackend(self.path)
        self.assertEqual(len(backend), 0)


if __name__ == '__main__':
    unittest.main()
