"""
ケイパビリティとビヘイビアのレジストリ

ブローカーのインスタンスごとに生成される名前付きの値ストア。
"""

import logging
from typing import Any, Dict, Generic, Mapping, Optional, TypeVar

from auth_broker.behaviors import Behavior
from auth_broker.errors import BehaviorNotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def layer_defaults(*layers: Optional[Mapping[str, T]]) -> Dict[str, T]:
    """複数のテーブルを順に重ねた新しい辞書を返す

    後ろのレイヤーがキー単位で前のレイヤーを置き換える。ネストした値は
    マージしない。
    """
    merged: Dict[str, T] = {}
    for layer in layers:
        if layer:
            merged.update(layer)
    return merged


class _Registry(Generic[T]):
    """名前から値へのミュータブルなマッピング"""

    def __init__(self, defaults: Optional[Mapping[str, T]] = None) -> None:
        self._values: Dict[str, T] = dict(defaults or {})

    def has(self, name: str) -> bool:
        """明示的に設定されているか（値の真偽は問わない）"""
        return name in self._values

    def set(self, name: str, value: T) -> None:
        self._values[name] = value

    def unset(self, name: str) -> None:
        self._values.pop(name, None)


class CapabilityRegistry(_Registry[Any]):
    """ケイパビリティのストア

    未設定のケイパビリティは `None` を返す。`has()` を使うと未設定と
    False が設定されている状態を区別できる。
    """

    def get(self, name: str) -> Any:
        return self._values.get(name)


class BehaviorRegistry(_Registry[Behavior]):
    """ビヘイビアのストア

    「次に何が起きるか」の唯一の情報源なので、未登録の名前は黙って
    無視せず BehaviorNotFoundError を送出する。
    """

    def get(self, name: str) -> Behavior:
        try:
            return self._values[name]
        except KeyError:
            error = BehaviorNotFoundError(name)
            logger.log(error.log_level, "%s", error)
            raise error from None
