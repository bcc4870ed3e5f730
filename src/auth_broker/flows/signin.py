"""サインイン完了フロー。

ブローカーのフックを呼び出し、返ってきたビヘイビアを実行する。
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Mapping, Optional

from auth_broker.behaviors import Behavior, BehaviorType, NavigateBehavior
from auth_broker.brokers.base import BaseAuthenticationBroker
from auth_broker.constants import DEFAULT_SIGNIN_DESTINATION
from auth_broker.errors import UnexpectedError
from auth_broker.models import Account, Relier, VerificationMethod, VerificationReason

logger = logging.getLogger(__name__)

Navigator = Callable[[str, Mapping[str, Any]], Awaitable[None]]
SignInAccount = Callable[[Account, Optional[str]], Awaitable[Account]]


class SignInFlow:
    """サインインの送信から完了後の遷移までを扱う。

    Attributes:
        broker: 使用するブローカー
        relier: 認証を要求しているRP
        after_sign_in_broker_method: サインイン後に呼ぶフック名
        redirect_to: 既定の遷移先を上書きする画面名
    """

    def __init__(
        self,
        broker: BaseAuthenticationBroker,
        relier: Relier,
        sign_in_account: SignInAccount,
        navigate: Navigator,
        after_sign_in_broker_method: str = "after_sign_in",
        after_sign_in_navigate_data: Optional[Mapping[str, Any]] = None,
        redirect_to: Optional[str] = None,
    ) -> None:
        self.broker = broker
        self.relier = relier
        self._sign_in_account = sign_in_account
        self._navigate = navigate
        self.after_sign_in_broker_method = after_sign_in_broker_method
        self.after_sign_in_navigate_data = dict(after_sign_in_navigate_data or {})
        self.redirect_to = redirect_to

    async def sign_in(self, account: Optional[Account], password: Optional[str] = None) -> Optional[str]:
        """アカウントをサインインさせる。

        Args:
            account: サインインするアカウント。
            password: パスワード。セッショントークンでサインインする場合はNone。

        Returns:
            遷移先の画面名。ビヘイビアが遷移を止めた場合はNone。

        Raises:
            UnexpectedError: アカウントがない、または資格情報がない場合。
        """

        if account is None or account.is_default() or (not account.session_token and not password):
            raise UnexpectedError()

        if not await self.invoke_broker_method("before_sign_in", account):
            return None

        signed_in = await self._sign_in_account(account, password)
        return await self.on_sign_in_success(signed_in)

    async def on_sign_in_success(self, account: Account) -> Optional[str]:
        """サインイン成功後の遷移を決める。"""

        if not account.verified:
            if (
                account.verification_reason == VerificationReason.SIGN_IN
                and account.verification_method == VerificationMethod.EMAIL
            ):
                return await self._go("confirm_signin", {"account": account})
            return await self._go("confirm", {"account": account})

        # Syncなどが古いuidで force_auth を開いた場合に「セッション切れ」が
        # 続かないよう、ブローカーが許す場合に限りuidを訂正する
        if account.uid != self.relier.uid and self.broker.has_capability("allow_uid_change"):
            logger.info("Relier uid corrected after sign-in")
            self.relier.uid = account.uid

        if not await self.invoke_broker_method(self.after_sign_in_broker_method, account):
            return None

        return await self._go(
            self.redirect_to or DEFAULT_SIGNIN_DESTINATION,
            self.after_sign_in_navigate_data,
        )

    async def invoke_broker_method(self, method_name: str, account: Account) -> bool:
        """ブローカーのフックを呼び、ビヘイビアを実行する。

        Returns:
            呼び出し側が既定の処理を続けてよい場合にTrue。
        """

        hook = getattr(self.broker, method_name)
        behavior = await hook(account)
        return await self.execute_behavior(behavior)

    async def execute_behavior(self, behavior: Any) -> bool:
        if not isinstance(behavior, Behavior):
            return True
        if behavior.type is BehaviorType.HALT:
            return False
        if behavior.type is BehaviorType.NAVIGATE and isinstance(behavior, NavigateBehavior):
            await self._go(behavior.endpoint, behavior.navigate_data)
            return False
        return True

    async def _go(self, endpoint: str, data: Mapping[str, Any]) -> str:
        await self._navigate(endpoint, dict(data))
        return endpoint
