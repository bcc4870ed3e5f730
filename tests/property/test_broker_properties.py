"""
ブローカーのプロパティテスト

レジストリの重ね合わせ、認可コードの書式、リンク変換の性質を検証する。
"""

import asyncio
import unittest
from urllib.parse import urlencode
from unittest.mock import AsyncMock

from hypothesis import given, settings
from hypothesis import strategies as st

from auth_broker.behaviors import HaltBehavior, NullBehavior
from auth_broker.brokers.base import BaseAuthenticationBroker
from auth_broker.brokers.oauth import (
    OAuthAuthenticationBroker,
    format_oauth_result,
    is_oauth_code_valid,
)
from auth_broker.errors import InvalidResultCodeError
from auth_broker.models import Account, Relier
from auth_broker.registry import CapabilityRegistry, layer_defaults
from auth_broker.verification.store import MemoryCorrelationStore

names = st.text(alphabet="abcdefghijklmnopqrstuvwxyz_", min_size=1, max_size=20)
tables = st.dictionaries(names, st.booleans(), max_size=8)
hex_codes = st.text(alphabet="0123456789abcdef", min_size=64, max_size=64)
STATE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_.~ "
path_segments = st.text(alphabet="abcdefghijklmnopqrstuvwxyz_", min_size=1, max_size=15)


class TestRegistryProperties(unittest.TestCase):

    @given(base=tables, overrides=tables)
    @settings(max_examples=100)
    def test_later_layer_wins(self, base, overrides):
        """後ろのレイヤーのキーは常に前のレイヤーを置き換える"""
        merged = layer_defaults(base, overrides)

        self.assertEqual(set(merged), set(base) | set(overrides))
        for name, value in overrides.items():
            self.assertEqual(merged[name], value)
        for name in set(base) - set(overrides):
            self.assertEqual(merged[name], base[name])

    @given(defaults=tables, name=names, value=st.booleans())
    @settings(max_examples=100)
    def test_set_then_unset(self, defaults, name, value):
        registry = CapabilityRegistry(defaults)

        registry.set(name, value)
        self.assertTrue(registry.has(name))
        self.assertEqual(registry.get(name), value)

        registry.unset(name)
        self.assertFalse(registry.has(name))
        self.assertIsNone(registry.get(name))

    @given(capabilities=tables)
    @settings(max_examples=50)
    def test_caller_capabilities_never_mutate_class_defaults(self, capabilities):
        before = dict(BaseAuthenticationBroker.DEFAULT_CAPABILITIES)
        broker = BaseAuthenticationBroker(
            Relier(),
            correlation_store=MemoryCorrelationStore(),
            capabilities=capabilities,
        )
        for name, value in capabilities.items():
            self.assertEqual(broker.has_capability(name), value)
        self.assertEqual(BaseAuthenticationBroker.DEFAULT_CAPABILITIES, before)


class TestOAuthResultProperties(unittest.TestCase):

    @given(code=hex_codes, state=st.text(alphabet=STATE_ALPHABET, min_size=1, max_size=30))
    @settings(max_examples=100)
    def test_valid_redirect_yields_code_and_state(self, code, state):
        redirect = "https://rp.example.com/callback?" + urlencode({"state": state, "code": code})

        result = format_oauth_result({"redirect": redirect})

        self.assertEqual(result.code, code)
        self.assertEqual(result.state, state)
        self.assertEqual(result.redirect, redirect)

    @given(code=st.text(alphabet="0123456789abcdefxyz", max_size=80))
    @settings(max_examples=100)
    def test_code_grammar(self, code):
        redirect = "https://rp.example.com/callback?" + urlencode({"code": code})
        if is_oauth_code_valid(code):
            self.assertEqual(format_oauth_result({"redirect": redirect}).code, code)
        else:
            with self.assertRaises(InvalidResultCodeError):
                format_oauth_result({"redirect": redirect})

    @given(length=st.integers(min_value=1, max_value=128))
    @settings(max_examples=50)
    def test_only_exact_length_is_valid(self, length):
        self.assertEqual(is_oauth_code_valid("a" * length), length == 64)


class TestOAuthBrokerProperties(unittest.TestCase):

    def make_broker(self, relier):
        assertion_library = AsyncMock()
        assertion_library.generate.return_value = "assertion"
        oauth_client = AsyncMock()
        oauth_client.get_code.return_value = {
            "redirect": "https://rp.example.com/callback?code=" + "a" * 64
        }
        broker = OAuthAuthenticationBroker(
            relier,
            assertion_library,
            oauth_client,
            correlation_store=MemoryCorrelationStore(),
        )
        return broker, oauth_client

    @given(access_type=st.one_of(st.none(), st.text(max_size=10)))
    @settings(max_examples=50)
    def test_offline_flag_only_when_requested(self, access_type):
        broker, oauth_client = self.make_broker(Relier(client_id="id", access_type=access_type))

        asyncio.run(broker.get_oauth_result(Account(uid="u", session_token="t")))

        params = oauth_client.get_code.await_args.args[0]
        if access_type == "offline":
            self.assertEqual(params["access_type"], "offline")
        else:
            self.assertNotIn("access_type", params)

    @given(segments=st.lists(path_segments, min_size=1, max_size=4), leading=st.booleans())
    @settings(max_examples=100)
    def test_transform_link_always_prefixes_once(self, segments, leading):
        broker, _ = self.make_broker(Relier())
        link = ("/" if leading else "") + "/".join(segments)

        transformed = broker.transform_link(link)

        self.assertEqual(transformed, "/oauth/" + "/".join(segments))

    def test_oauth_halts_are_class_level(self):
        broker, _ = self.make_broker(Relier())
        self.assertEqual(broker.get_behavior("after_sign_in"), HaltBehavior())
        self.assertEqual(broker.get_behavior("after_sign_up"), NullBehavior())


if __name__ == "__main__":
    unittest.main()
