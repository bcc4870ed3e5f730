"""
エラー定義

認証ブローカーで使用されるエラーコードと例外クラス
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """エラーコード

    カテゴリ別にエラーコードを定義:
    - CONFIG_xxx: 設定（配線）エラー
    - AUTH_xxx: 前提条件エラー
    - OAUTH_xxx: OAuth結果の検証エラー
    - PARAM_xxx: クエリパラメータの検証エラー
    """
    # 設定エラー
    CONFIG_BEHAVIOR_NOT_FOUND = "CONFIG_001"
    CONFIG_INVALID_VALUE = "CONFIG_002"
    CONFIG_UNKNOWN_BROKER = "CONFIG_003"

    # 前提条件エラー
    AUTH_INVALID_TOKEN = "AUTH_001"
    AUTH_UNEXPECTED_ERROR = "AUTH_002"

    # OAuth結果エラー
    OAUTH_INVALID_RESULT = "OAUTH_001"
    OAUTH_INVALID_RESULT_REDIRECT = "OAUTH_002"
    OAUTH_INVALID_RESULT_CODE = "OAUTH_003"

    # クエリパラメータエラー
    PARAM_INVALID = "PARAM_001"


@dataclass
class BrokerError:
    """ブローカーエラー情報

    Attributes:
        code: エラーコード文字列
        message: エラーメッセージ
        details: 追加のエラー詳細情報
        recoverable: 復旧可能かどうか
    """
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None
    recoverable: bool = False
    log_level: int = logging.ERROR


class BrokerException(Exception):
    """ブローカー例外クラス

    BrokerErrorをラップする例外クラス
    """

    def __init__(self, error: BrokerError):
        """BrokerExceptionを初期化

        Args:
            error: BrokerErrorインスタンス
        """
        self.error = error
        self.log_level = error.log_level
        super().__init__(f"[{error.code}] {error.message}")

    @property
    def code(self) -> str:
        return self.error.code


class ConfigurationException(BrokerException):
    """配線ミスを表す例外（開発時に修正すべきもの）"""


class PreconditionException(BrokerException):
    """呼び出し前提を満たさない場合の例外"""


class OAuthResultException(BrokerException):
    """OAuthサーバーの応答が不正な場合の例外"""


class ValidationException(BrokerException):
    """バリデーション例外（入力/スキーマ関連）"""


class BehaviorNotFoundError(ConfigurationException):
    """未登録のビヘイビア名が要求された"""

    def __init__(self, behavior_name: str):
        super().__init__(
            create_config_error(
                ErrorCode.CONFIG_BEHAVIOR_NOT_FOUND,
                f"behavior not found for: {behavior_name}",
                details={"behavior": behavior_name},
            )
        )
        self.behavior_name = behavior_name


class InvalidTokenError(PreconditionException):
    """アカウントまたはセッショントークンが存在しない"""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(
            create_precondition_error(ErrorCode.AUTH_INVALID_TOKEN, message)
        )


class UnexpectedError(PreconditionException):
    """サインインに必要な情報が揃っていない"""

    def __init__(self, message: str = "Unexpected error"):
        super().__init__(
            create_precondition_error(ErrorCode.AUTH_UNEXPECTED_ERROR, message)
        )


class InvalidResultError(OAuthResultException):
    """OAuthサーバーから結果が返らなかった"""

    def __init__(self, message: str = "Invalid OAuth result"):
        super().__init__(create_oauth_error(ErrorCode.OAUTH_INVALID_RESULT, message))


class InvalidResultRedirectError(OAuthResultException):
    """OAuth結果にredirectが含まれていない"""

    def __init__(self, message: str = "Invalid OAuth result redirect"):
        super().__init__(
            create_oauth_error(ErrorCode.OAUTH_INVALID_RESULT_REDIRECT, message)
        )


class InvalidResultCodeError(OAuthResultException):
    """redirectのcodeが書式に合わない"""

    def __init__(self, message: str = "Invalid OAuth result code"):
        super().__init__(
            create_oauth_error(ErrorCode.OAUTH_INVALID_RESULT_CODE, message)
        )


class QueryParameterError(ValidationException):
    """クエリパラメータの値が不正"""

    def __init__(self, param: str, reason: str):
        super().__init__(
            BrokerError(
                code=ErrorCode.PARAM_INVALID.value,
                message=f"Invalid parameter: {param} ({reason})",
                details={"param": param, "reason": reason},
                recoverable=False,
                log_level=logging.WARNING,
            )
        )
        self.param = param


# よく使用されるエラーのファクトリ関数
def create_config_error(
    code: ErrorCode,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> BrokerError:
    """設定エラーを作成

    設定エラーは致命的であり、復旧不可能として扱う。

    Args:
        code: エラーコード
        message: エラーメッセージ
        details: 追加詳細

    Returns:
        BrokerError: 設定エラー
    """
    return BrokerError(
        code=code.value,
        message=message,
        details=details,
        recoverable=False,
        log_level=logging.CRITICAL,
    )


def create_precondition_error(
    code: ErrorCode,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> BrokerError:
    """前提条件エラーを作成

    Args:
        code: エラーコード
        message: エラーメッセージ
        details: 追加詳細

    Returns:
        BrokerError: 前提条件エラー
    """
    return BrokerError(
        code=code.value,
        message=message,
        details=details,
        recoverable=False,
        log_level=logging.WARNING,
    )


def create_oauth_error(
    code: ErrorCode,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> BrokerError:
    """OAuth結果エラーを作成

    Args:
        code: エラーコード
        message: エラーメッセージ
        details: 追加詳細

    Returns:
        BrokerError: OAuth結果エラー
    """
    return BrokerError(
        code=code.value,
        message=message,
        details=details,
        recoverable=False,
        log_level=logging.ERROR,
    )
