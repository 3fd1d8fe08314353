import os
import shutil
import tempfile
import unittest

from timenode.config import (
    TIMENODE_CONFIG,
    get_timenode_config,
    load_config_file,
    validate_config,
)
from timenode.errors import ConfigError
from timenode_fakes import addr


def valid_settings(**overrides):
    settings = get_timenode_config({'tracker': addr(1), 'factory': addr(2)})
    settings.update(overrides)
    return settings


class TestTimenodeConfig(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def write(self, text):
        path = os.path.join(self.tmpdir, 'timenode.yaml')
        with open(path, 'w') as f:
            f.write(text)
        return path

    def test_defaults_are_copied(self):
        config = get_timenode_config({'scan_spread': 7})

        self.assertEqual(config['scan_spread'], 7)
        self.assertNotEqual(TIMENODE_CONFIG['scan_spread'], 7)

    def test_none_overrides_ignored(self):
        config = get_timenode_config({'scan_spread': None})

        self.assertEqual(config['scan_spread'], TIMENODE_CONFIG['scan_spread'])

    def test_unknown_setting(self):
        with self.assertRaises(ConfigError):
            get_timenode_config({'scan_spred': 7})

    def test_load_yaml(self):
        path = self.write("scan_spread: 20\ninterval_seconds: 2.5\navg_block_time_mode: delta\n")

        config = load_config_file(path)

        self.assertEqual(config['scan_spread'], 20)
        self.assertEqual(config['interval_seconds'], 2.5)
        self.assertEqual(config['avg_block_time_mode'], 'delta')

    def test_load_empty_yaml(self):
        self.assertEqual(load_config_file(self.write("")), get_timenode_config())

    def test_load_missing_file(self):
        with self.assertRaises(ConfigError):
            load_config_file(os.path.join(self.tmpdir, 'nope.yaml'))

    def test_load_non_mapping(self):
        with self.assertRaises(ConfigError):
            load_config_file(self.write("- 1\n- 2\n"))

    def test_validate_ok(self):
        settings = valid_settings()
        self.assertIs(validate_config(settings), settings)

    def test_validate_rejects(self):
        cases = [
            {'scan_spread': 0},
            {'scan_spread': 'wide'},
            {'interval_seconds': -1},
            {'max_dispatch_concurrency': -2},
            {'avg_block_time_mode': 'median'},
            {'tracker': ''},
            {'factory': '0x1234'},
        ]
        for overrides in cases:
            with self.subTest(overrides=overrides):
                with self.assertRaises(ConfigError):
                    validate_config(valid_settings(**overrides))


if __name__ == '__main__':
    unittest.main()
