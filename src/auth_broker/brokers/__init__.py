"""認証ブローカーの公開API。"""

from __future__ import annotations

from typing import Any

from auth_broker.brokers.base import BaseAuthenticationBroker
from auth_broker.brokers.oauth import (
    OAuthAuthenticationBroker,
    format_oauth_result,
    is_oauth_code_valid,
)
from auth_broker.errors import BrokerError, ConfigurationException, ErrorCode

__all__ = [
    "BaseAuthenticationBroker",
    "OAuthAuthenticationBroker",
    "create_broker",
    "format_oauth_result",
    "is_oauth_code_valid",
    "register_broker_kind",
]

_BROKER_KINDS: dict[str, type[BaseAuthenticationBroker]] = {
    BaseAuthenticationBroker.type: BaseAuthenticationBroker,
    OAuthAuthenticationBroker.type: OAuthAuthenticationBroker,
}


def register_broker_kind(kind: str, broker_cls: type[BaseAuthenticationBroker]) -> None:
    """ブローカーの種類を登録する。

    Args:
        kind: ブローカー種別。
        broker_cls: 種別に対応するブローカークラス。
    """

    _BROKER_KINDS[kind.lower()] = broker_cls


def create_broker(kind: str, **options: Any) -> BaseAuthenticationBroker:
    """ブローカーを生成する。

    Args:
        kind: ブローカー種別。
        **options: ブローカーのコンストラクタ引数。

    Returns:
        ブローカーのインスタンス。

    Raises:
        ConfigurationException: 未登録の種別が指定された場合。
    """

    broker_cls = _BROKER_KINDS.get(kind.lower())
    if broker_cls is None:
        raise ConfigurationException(
            BrokerError(
                code=ErrorCode.CONFIG_UNKNOWN_BROKER.value,
                message=f"未対応のブローカーです: {kind}",
                details={"kind": kind, "available": sorted(_BROKER_KINDS)},
                recoverable=False,
            )
        )
    return broker_cls(**options)
