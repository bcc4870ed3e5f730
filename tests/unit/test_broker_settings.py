"""
BrokerSettings のユニットテスト
"""

import os
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

from pydantic import ValidationError

from auth_broker.config.settings import BrokerSettings
from auth_broker.errors import ConfigurationException


class TestBrokerSettings(unittest.TestCase):
    """BrokerSettings の基本動作を検証する"""

    @patch.dict(os.environ, {}, clear=True)
    def test_default_values(self):
        settings = BrokerSettings()

        self.assertEqual(settings.force_auth_paths, ["/force_auth", "/oauth/force_auth"])
        self.assertEqual(settings.oauth_route_prefix, "/oauth")
        self.assertEqual(settings.verification_namespace, "context")
        self.assertEqual(settings.oauth_code_length, 64)
        self.assertEqual(settings.keyring_service, "auth_broker")
        self.assertIsNone(settings.correlation_fallback_path)
        self.assertIsNone(settings.oauth_server_url)
        self.assertEqual(settings.oauth_timeout, 30.0)
        self.assertEqual(settings.capability_overrides, {})

    @patch.dict(
        os.environ,
        {
            "AUTH_BROKER_OAUTH_ROUTE_PREFIX": "/authorization",
            "AUTH_BROKER_OAUTH_TIMEOUT": "5",
        },
        clear=True,
    )
    def test_env_prefix_loading(self):
        settings = BrokerSettings()

        self.assertEqual(settings.oauth_route_prefix, "/authorization")
        self.assertEqual(settings.oauth_timeout, 5.0)

    def test_invalid_values(self):
        for kwargs in [
            {"oauth_route_prefix": "oauth"},
            {"oauth_route_prefix": "/oauth/"},
            {"force_auth_paths": []},
            {"force_auth_paths": ["force_auth"]},
            {"oauth_code_length": 0},
            {"oauth_timeout": 0},
            {"unknown_field": True},
        ]:
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(ValidationError):
                    BrokerSettings(**kwargs)


class TestBrokerSettingsFromYaml(unittest.TestCase):

    def setUp(self):
        self.tmpdir = TemporaryDirectory()
        self.path = Path(self.tmpdir.name) / "broker.yaml"

    def tearDown(self):
        self.tmpdir.cleanup()

    @patch.dict(os.environ, {}, clear=True)
    def test_loads_values(self):
        self.path.write_text(
            "oauth_server_url: https://oauth.example.com\n"
            "capability_overrides:\n"
            "  signup: false\n",
            encoding="utf-8",
        )

        settings = BrokerSettings.from_yaml(self.path)

        self.assertEqual(settings.oauth_server_url, "https://oauth.example.com")
        self.assertEqual(settings.capability_overrides, {"signup": False})

    @patch.dict(
        os.environ, {"AUTH_BROKER_OAUTH_SERVER_URL": "https://env.example.com"}, clear=True
    )
    def test_env_wins_over_file(self):
        self.path.write_text("oauth_server_url: https://file.example.com\n", encoding="utf-8")

        settings = BrokerSettings.from_yaml(self.path)

        self.assertEqual(settings.oauth_server_url, "https://env.example.com")

    @patch.dict(os.environ, {}, clear=True)
    def test_empty_file_uses_defaults(self):
        self.path.write_text("", encoding="utf-8")
        self.assertEqual(BrokerSettings.from_yaml(self.path).oauth_route_prefix, "/oauth")

    def test_missing_file(self):
        with self.assertRaises(ConfigurationException) as ctx:
            BrokerSettings.from_yaml(self.path)
        self.assertEqual(ctx.exception.code, "CONFIG_002")

    def test_non_mapping_file(self):
        self.path.write_text("- a\n- b\n", encoding="utf-8")
        with self.assertRaises(ConfigurationException):
            BrokerSettings.from_yaml(self.path)

    def test_malformed_yaml(self):
        self.path.write_text("key: [unclosed\n", encoding="utf-8")
        with self.assertRaises(ConfigurationException):
            BrokerSettings.from_yaml(self.path)


if __name__ == "__main__":
    unittest.main()
