import json
import os
import tempfile
import unittest

from orggate.config import DEFAULT_REDIRECT_URL, GateConfig, config_from_dict, load_config
from orggate.errors import ConfigError, ConfigNotFound


class TestConfigFromDict(unittest.TestCase):
    def test_defaults(self):
        cfg = config_from_dict({})
        self.assertEqual(cfg, GateConfig())
        self.assertEqual(cfg.blocked_organizations, ())
        self.assertEqual(cfg.redirect_url, DEFAULT_REDIRECT_URL)
        self.assertIsNone(cfg.lookup_timeout)

    def test_camel_case_keys(self):
        cfg = config_from_dict(
            {
                "listenHost": "127.0.0.1",
                "listenPort": 8443,
                "listenSSL": True,
                "certificate": "cert.pem",
                "key": "key.pem",
                "blockedOrganizations": ["Corp", "Acme"],
                "redirectUrl": "https://example.org/",
                "lookupTimeout": 2.5,
                "somethingElse": 1,
            }
        )
        self.assertEqual(cfg.listen_host, "127.0.0.1")
        self.assertEqual(cfg.listen_port, 8443)
        self.assertTrue(cfg.listen_ssl)
        self.assertEqual(cfg.blocked_organizations, ("Corp", "Acme"))
        self.assertEqual(cfg.redirect_url, "https://example.org/")
        self.assertEqual(cfg.lookup_timeout, 2.5)

    def test_invalid_values(self):
        bad = [
            [],
            {"listenPort": "80"},
            {"listenPort": True},
            {"listenPort": 70000},
            {"blockedOrganizations": "Acme"},
            {"blockedOrganizations": ["Acme", 3]},
            {"listenSSL": True},
        ]
        for data in bad:
            with self.subTest(data=data):
                with self.assertRaises(ConfigError):
                    config_from_dict(data)

    def test_with_blocked(self):
        cfg = config_from_dict({"listenPort": 9000, "blockedOrganizations": ["A"]})
        other = cfg.with_blocked(("B", "C"))
        self.assertEqual(other.blocked_organizations, ("B", "C"))
        self.assertEqual(other.listen_port, 9000)
        self.assertEqual(cfg.blocked_organizations, ("A",))


class TestLoadConfig(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)

    def _write(self, text):
        path = os.path.join(self.tmpdir.name, "config.json")
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        return path

    def test_load(self):
        path = self._write(json.dumps({"blockedOrganizations": ["Acme"]}))
        self.assertEqual(load_config(path).blocked_organizations, ("Acme",))

    def test_missing_file(self):
        with self.assertRaises(ConfigNotFound):
            load_config(os.path.join(self.tmpdir.name, "nope.json"))

    def test_not_json(self):
        with self.assertRaises(ConfigError) as ctx:
            load_config(self._write("{listenPort: 80"))
        self.assertNotIsInstance(ctx.exception, ConfigNotFound)


if __name__ == "__main__":
    unittest.main()
