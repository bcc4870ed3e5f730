"""
エラー定義のユニットテスト
"""

import logging
import unittest

from auth_broker.errors import (
    BehaviorNotFoundError,
    BrokerError,
    BrokerException,
    ConfigurationException,
    ErrorCode,
    InvalidResultCodeError,
    InvalidResultError,
    InvalidResultRedirectError,
    InvalidTokenError,
    OAuthResultException,
    PreconditionException,
    QueryParameterError,
    ValidationException,
    create_config_error,
)


class TestErrorCode(unittest.TestCase):
    """ErrorCode列挙型のテスト"""

    def test_codes(self):
        self.assertEqual(ErrorCode.CONFIG_BEHAVIOR_NOT_FOUND.value, "CONFIG_001")
        self.assertEqual(ErrorCode.AUTH_INVALID_TOKEN.value, "AUTH_001")
        self.assertEqual(ErrorCode.OAUTH_INVALID_RESULT.value, "OAUTH_001")
        self.assertEqual(ErrorCode.OAUTH_INVALID_RESULT_REDIRECT.value, "OAUTH_002")
        self.assertEqual(ErrorCode.OAUTH_INVALID_RESULT_CODE.value, "OAUTH_003")
        self.assertEqual(ErrorCode.PARAM_INVALID.value, "PARAM_001")

    def test_codes_are_unique(self):
        values = [code.value for code in ErrorCode]
        self.assertEqual(len(values), len(set(values)))


class TestExceptions(unittest.TestCase):
    """例外階層のテスト"""

    def test_message_contains_code(self):
        exc = BrokerException(BrokerError(code="CONFIG_002", message="bad"))
        self.assertEqual(str(exc), "[CONFIG_002] bad")
        self.assertEqual(exc.log_level, logging.ERROR)

    def test_taxonomy(self):
        self.assertIsInstance(BehaviorNotFoundError("x"), ConfigurationException)
        self.assertIsInstance(InvalidTokenError(), PreconditionException)
        self.assertIsInstance(QueryParameterError("p", "bad"), ValidationException)
        for exc in (InvalidResultError(), InvalidResultRedirectError(), InvalidResultCodeError()):
            with self.subTest(exc=type(exc).__name__):
                self.assertIsInstance(exc, OAuthResultException)
                self.assertFalse(exc.error.recoverable)

    def test_oauth_errors_are_distinct(self):
        self.assertNotIsInstance(InvalidResultCodeError(), InvalidResultRedirectError)
        self.assertNotIsInstance(InvalidResultRedirectError(), InvalidResultError)

    def test_config_error_is_fatal(self):
        error = create_config_error(ErrorCode.CONFIG_INVALID_VALUE, "bad wiring")
        self.assertFalse(error.recoverable)
        self.assertEqual(error.log_level, logging.CRITICAL)

    def test_behavior_not_found_details(self):
        exc = BehaviorNotFoundError("afterSignin")
        self.assertEqual(exc.error.details, {"behavior": "afterSignin"})
        self.assertIn("afterSignin", str(exc))


if __name__ == "__main__":
    unittest.main()
