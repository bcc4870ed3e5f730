"""設定管理 - ブローカー設定の読み込み"""

from auth_broker.config.settings import BrokerSettings

__all__ = [
    "BrokerSettings",
]
