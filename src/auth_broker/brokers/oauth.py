"""
OAuth認証ブローカー

認証済みアカウントのセッションから署名付きアサーションを作り、OAuth認可
コードと交換してRPへ引き渡す。引き渡し方（リダイレクト、ウィンドウ間
メッセージなど）はサブクラスが `send_oauth_result_to_relier` で実装する。
"""

import logging
import re
from types import MappingProxyType
from typing import Any, ClassVar, Dict, Mapping, Optional

import httpx

from auth_broker.behaviors import Behavior, HaltBehavior
from auth_broker.brokers.base import BaseAuthenticationBroker
from auth_broker.clients.base import AssertionLibrary, OAuthClient
from auth_broker.clients.oauth import HttpOAuthClient
from auth_broker.constants import (
    ACCESS_TYPE_OFFLINE,
    OAUTH_ACTION_SIGNIN,
    OAUTH_ACTION_SIGNUP,
    OAUTH_CODE_LENGTH,
    OAUTH_SESSION_KEY,
)
from auth_broker.errors import (
    InvalidResultCodeError,
    InvalidResultError,
    InvalidResultRedirectError,
    InvalidTokenError,
)
from auth_broker.models import Account, OAuthResult, Relier
from auth_broker.session import Session

logger = logging.getLogger(__name__)

_RESULT_FIELDS = ("redirect", "code", "state", "action")


def is_oauth_code_valid(code: Optional[str], length: int = OAUTH_CODE_LENGTH) -> bool:
    """認可コードが指定桁数の16進文字列か"""
    if not isinstance(code, str):
        return False
    return re.fullmatch(rf"[0-9a-fA-F]{{{length}}}", code) is not None


def format_oauth_result(
    result: Optional[Mapping[str, Any]],
    code_length: int = OAUTH_CODE_LENGTH,
) -> OAuthResult:
    """OAuthサーバーの結果から redirect の code と state を取り出す

    副作用のない純粋関数。

    Args:
        result: OAuthサーバーが返した結果
        code_length: 認可コードの桁数

    Returns:
        OAuthResult: state と code を加えた結果

    Raises:
        InvalidResultError: 結果が存在しない場合
        InvalidResultRedirectError: redirect が存在しない、または解釈できない場合
        InvalidResultCodeError: code が書式に合わない場合
    """
    if result is None:
        raise InvalidResultError()

    redirect = result.get("redirect")
    if not isinstance(redirect, str) or not redirect:
        raise InvalidResultRedirectError()

    try:
        params = httpx.URL(redirect).params
    except httpx.InvalidURL as exc:
        raise InvalidResultRedirectError() from exc

    code = params.get("code")
    if not is_oauth_code_valid(code, code_length):
        raise InvalidResultCodeError()

    return OAuthResult(
        redirect=redirect,
        code=code,
        state=params.get("state"),
        action=result.get("action"),
        extra={key: value for key, value in result.items() if key not in _RESULT_FIELDS},
    )


class OAuthAuthenticationBroker(BaseAuthenticationBroker):
    """OAuthフローを完了できるブローカー

    `send_oauth_result_to_relier` をオーバーライドして使う。
    """

    type: ClassVar[str] = "oauth"

    # サインイン後はRPが引き継ぐので画面遷移しない
    BEHAVIOR_OVERRIDES: ClassVar[Mapping[str, Behavior]] = MappingProxyType({
        "after_force_auth": HaltBehavior(),
        "after_sign_in": HaltBehavior(),
        "after_sign_in_confirmation_poll": HaltBehavior(),
    })

    # RPのURLへ複数回リダイレクトしないよう、他タブのサインイン通知は扱わない
    CAPABILITY_OVERRIDES: ClassVar[Mapping[str, Any]] = MappingProxyType({
        "handle_signed_in_notification": False,
    })

    def __init__(
        self,
        relier: Relier,
        assertion_library: AssertionLibrary,
        oauth_client: Optional[OAuthClient] = None,
        session: Optional[Session] = None,
        **options: Any,
    ):
        """OAuthブローカーを初期化

        Args:
            relier: 認証を要求しているRP
            assertion_library: アサーション生成器
            oauth_client: 認可コード交換クライアント。省略時は設定の
                oauth_server_url から HttpOAuthClient を生成する
            session: OAuthフローの一時セッション
            **options: BaseAuthenticationBroker へ渡す引数
        """
        super().__init__(relier, **options)
        self.session = session or Session()
        self._assertion_library = assertion_library
        if oauth_client is None:
            oauth_client = HttpOAuthClient.from_settings(self.settings)
        self._oauth_client = oauth_client

    def _build_oauth_params(self, assertion: str) -> Dict[str, Any]:
        relier = self.relier
        oauth_params: Dict[str, Any] = {
            "assertion": assertion,
            "client_id": relier.client_id,
            "scope": relier.scope,
            "state": relier.state,
        }
        # offline でなければキー自体を含めない（False とは区別する）
        if relier.access_type == ACCESS_TYPE_OFFLINE:
            oauth_params["access_type"] = ACCESS_TYPE_OFFLINE
        return oauth_params

    async def get_oauth_result(self, account: Optional[Account]) -> OAuthResult:
        """アカウントのセッションを認可コードと交換する

        Raises:
            InvalidTokenError: アカウントまたはセッショントークンがない場合
            OAuthResultException: OAuthサーバーの結果が不正な場合
        """
        if account is None or not account.session_token:
            raise InvalidTokenError()

        assertion = await self._assertion_library.generate(account.session_token)
        raw_result = await self._oauth_client.get_code(self._build_oauth_params(assertion))
        return format_oauth_result(raw_result, self.settings.oauth_code_length)

    async def send_oauth_result_to_relier(self, result: OAuthResult) -> Any:
        """OAuthフローを完了する手段。サブクラスが実装する。

        Args:
            result: state, code, redirect を含む結果
        """
        raise NotImplementedError("subclasses must override send_oauth_result_to_relier")

    async def finish_oauth_sign_in_flow(self, account: Account) -> Any:
        return await self.finish_oauth_flow(account, {"action": OAUTH_ACTION_SIGNIN})

    async def finish_oauth_sign_up_flow(self, account: Account) -> Any:
        return await self.finish_oauth_flow(account, {"action": OAUTH_ACTION_SIGNUP})

    async def finish_oauth_flow(
        self,
        account: Account,
        additional_result_data: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """一時セッションを消し、認可コードを取得してRPへ送る"""
        self.session.clear(OAUTH_SESSION_KEY)
        result = await self.get_oauth_result(account)

        additional = dict(additional_result_data or {})
        if "action" in additional:
            result.action = additional.pop("action")
        result.extra.update(additional)

        logger.info(
            "OAuth flow finished: client_id=%s action=%s",
            self.relier.client_id,
            result.action,
        )
        return await self.send_oauth_result_to_relier(result)

    async def persist_verification_data(self, account: Account) -> None:
        """同じブラウザの確認ページがOAuthの文脈を復元できるよう保存する"""
        relier = self.relier
        self.session.set(OAUTH_SESSION_KEY, {
            "access_type": relier.access_type,
            "action": relier.action,
            "client_id": relier.client_id,
            "keys": relier.keys,
            "scope": relier.scope,
            "state": relier.state,
        })
        await super().persist_verification_data(account)

    async def after_force_auth(self, account: Account) -> Behavior:
        await self.finish_oauth_sign_in_flow(account)
        return await super().after_force_auth(account)

    async def after_sign_in(self, account: Account) -> Behavior:
        await self.finish_oauth_sign_in_flow(account)
        return await super().after_sign_in(account)

    async def after_sign_in_confirmation_poll(self, account: Account) -> Behavior:
        await self.finish_oauth_sign_in_flow(account)
        return await super().after_sign_in_confirmation_poll(account)

    async def after_sign_up_confirmation_poll(self, account: Account) -> Any:
        # 元のタブが開いていれば、常にそのタブがOAuthフローを完了させる
        return await self.finish_oauth_sign_up_flow(account)

    async def after_reset_password_confirmation_poll(self, account: Account) -> Any:
        return await self.finish_oauth_sign_in_flow(account)

    def transform_link(self, link: str) -> str:
        """OAuth対応のルート配下に留まるよう /oauth を前置する"""
        return self.settings.oauth_route_prefix + super().transform_link(link)
