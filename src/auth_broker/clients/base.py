"""外部コラボレータの基盤。

ブローカーが利用する署名付きアサーション生成とOAuthコード交換の
共通インターフェースを定義する。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class AssertionLibrary(ABC):
    """セッション資格情報から署名付きアサーションを生成する。"""

    @abstractmethod
    async def generate(self, session_token: str) -> str:
        """アサーションを返す。"""


class OAuthClient(ABC):
    """アサーションをOAuth認可コードと交換する。"""

    @abstractmethod
    async def get_code(self, params: dict[str, Any]) -> dict[str, Any] | None:
        """`redirect` を含む結果を返す。"""
