"""認証ブローカー

UIのライフサイクルイベントとRPへのOAuth引き渡しを仲介する。
"""

__version__ = "0.1.0"

from auth_broker.behaviors import Behavior, BehaviorType, HaltBehavior, NavigateBehavior, NullBehavior
from auth_broker.brokers import (
    BaseAuthenticationBroker,
    OAuthAuthenticationBroker,
    create_broker,
    format_oauth_result,
    register_broker_kind,
)
from auth_broker.config import BrokerSettings
from auth_broker.models import Account, OAuthResult, Relier, Window

__all__ = [
    "__version__",
    "Account",
    "BaseAuthenticationBroker",
    "Behavior",
    "BehaviorType",
    "BrokerSettings",
    "HaltBehavior",
    "NavigateBehavior",
    "NullBehavior",
    "OAuthAuthenticationBroker",
    "OAuthResult",
    "Relier",
    "Window",
    "create_broker",
    "format_oauth_result",
    "register_broker_kind",
]
