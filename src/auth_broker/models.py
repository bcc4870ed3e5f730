"""
共通データモデル

ブローカーが参照する外部コラボレータのデータ構造を定義
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import httpx


class VerificationMethod(Enum):
    """アカウント確認の手段"""
    EMAIL = "email"
    TOTP = "totp-2fa"


class VerificationReason(Enum):
    """アカウント確認が必要になった理由"""
    SIGN_IN = "signin"
    SIGN_UP = "signup"


@dataclass(frozen=True)
class Account:
    """認証対象のアカウント

    Attributes:
        uid: アカウントの一意なID
        email: メールアドレス
        session_token: セッション資格情報
        verified: 確認済みかどうか
        verification_method: 確認手段
        verification_reason: 確認理由
    """
    uid: Optional[str] = None
    email: Optional[str] = None
    session_token: Optional[str] = None
    verified: bool = False
    verification_method: Optional[VerificationMethod] = None
    verification_reason: Optional[VerificationReason] = None

    def is_default(self) -> bool:
        """識別情報を何も持たないアカウントかどうか"""
        return not (self.uid or self.email or self.session_token)


@dataclass
class Relier:
    """認証を要求しているRP（relying party）の情報

    ブローカーからは読み取り専用として扱う。例外は `uid` で、サインイン後に
    古いuidを訂正するためだけに書き換えられる。
    """
    client_id: Optional[str] = None
    scope: Optional[str] = None
    state: Optional[str] = None
    access_type: Optional[str] = None
    action: Optional[str] = None
    uid: Optional[str] = None
    context: Optional[str] = None
    keys: bool = False


@dataclass(frozen=True)
class Window:
    """ブローカーをホストするウィンドウ

    現在のURLからパスとクエリ文字列を取り出すためだけに使う。
    """
    url: str = "/"

    @property
    def pathname(self) -> str:
        return httpx.URL(self.url).path

    @property
    def search_params(self) -> Dict[str, str]:
        """クエリパラメータ（同名が複数ある場合は先頭の値）"""
        params: Dict[str, str] = {}
        for key, value in httpx.URL(self.url).params.multi_items():
            params.setdefault(key, value)
        return params


@dataclass
class OAuthResult:
    """認可コード交換の結果

    Attributes:
        redirect: RPへ戻るためのURL
        code: redirectから取り出した認可コード
        state: redirectから取り出したstate
        action: 完了したフロー（signin / signup）
        extra: OAuthサーバーが返したその他のフィールド
    """
    redirect: str
    code: str
    state: Optional[str] = None
    action: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.update(
            {
                "redirect": self.redirect,
                "code": self.code,
                "state": self.state,
            }
        )
        if self.action is not None:
            data["action"] = self.action
        return data
