"""タブ単位の一時セッション。

OAuthフローの途中経過（client_id や state など）を保持する。
"""

from __future__ import annotations

import copy
from typing import Any


class Session:
    """名前付きの値を保持する一時ストア。"""

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def set(self, name: str, value: Any) -> None:
        self._values[name] = copy.deepcopy(value)

    def get(self, name: str) -> Any:
        return copy.deepcopy(self._values.get(name))

    def has(self, name: str) -> bool:
        return name in self._values

    def clear(self, name: str | None = None) -> None:
        """指定した値、または全ての値を削除する。"""

        if name is None:
            self._values.clear()
        else:
            self._values.pop(name, None)
