"""
ビヘイビア定義

ライフサイクルフックの後にUIが次に何をすべきかを表す値オブジェクト。
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class BehaviorType(Enum):
    """ビヘイビアの種別"""
    NULL = "null"
    HALT = "halt"
    NAVIGATE = "navigate"


@dataclass(frozen=True)
class Behavior:
    """ビヘイビアの基底クラス

    種別とペイロード以外の同一性を持たない。
    """

    @property
    def type(self) -> BehaviorType:
        raise NotImplementedError


@dataclass(frozen=True)
class NullBehavior(Behavior):
    """何もしない。呼び出し側は通常の遷移を続ける。"""

    @property
    def type(self) -> BehaviorType:
        return BehaviorType.NULL


@dataclass(frozen=True)
class HaltBehavior(Behavior):
    """以降の画面遷移を止める。RPがフローを引き継ぐ場合に使う。"""

    @property
    def type(self) -> BehaviorType:
        return BehaviorType.HALT


@dataclass(frozen=True)
class NavigateBehavior(Behavior):
    """指定した画面へ遷移する

    Attributes:
        endpoint: 遷移先の画面名
        navigate_data: 遷移先へ渡すデータ
    """
    endpoint: str
    navigate_data: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "navigate_data", MappingProxyType(dict(self.navigate_data)))

    @property
    def type(self) -> BehaviorType:
        return BehaviorType.NAVIGATE
