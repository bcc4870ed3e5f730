"""
基本の認証ブローカー

UIフローのライフサイクルイベントごとに、次に何をすべきかを決める。
ブローカーの種類ごとの違いは既定のビヘイビア/ケイパビリティの上書きと
フックのオーバーライドで表現する。
"""

import logging
from types import MappingProxyType
from typing import Any, ClassVar, Dict, List, Mapping, Optional

from auth_broker.behaviors import Behavior, NullBehavior
from auth_broker.config.settings import BrokerSettings
from auth_broker.models import Account, Relier, Window
from auth_broker.registry import BehaviorRegistry, CapabilityRegistry, layer_defaults
from auth_broker.search_params import QueryParameter, SearchParamImporter, boolean
from auth_broker.verification.same_browser import SameBrowserVerification
from auth_broker.verification.store import CorrelationStore, KeyringCorrelationStore

logger = logging.getLogger(__name__)


class BaseAuthenticationBroker:
    """外部とのやり取りを担うブローカー

    Attributes:
        relier: 認証を要求しているRP
        window: ブローカーをホストするウィンドウ
        settings: ブローカー設定
    """

    type: ClassVar[str] = "base"

    # ビューの次の一手。サブクラスは BEHAVIOR_OVERRIDES で一部だけ差し替える。
    DEFAULT_BEHAVIORS: ClassVar[Mapping[str, Behavior]] = MappingProxyType({
        "after_change_password": NullBehavior(),
        "after_complete_reset_password": NullBehavior(),
        "after_complete_sign_up": NullBehavior(),
        "after_delete_account": NullBehavior(),
        "after_force_auth": NullBehavior(),
        "after_reset_password_confirmation_poll": NullBehavior(),
        "after_sign_in": NullBehavior(),
        "after_sign_in_confirmation_poll": NullBehavior(),
        "after_sign_up": NullBehavior(),
        "after_sign_up_confirmation_poll": NullBehavior(),
        "before_sign_in": NullBehavior(),
        "before_sign_up_confirmation_poll": NullBehavior(),
    })

    DEFAULT_CAPABILITIES: ClassVar[Mapping[str, Any]] = MappingProxyType({
        # RPが指定したuidが存在しない場合、同じメールアドレスの別uidで
        # サインイン/サインアップしてよいか
        "allow_uid_change": False,
        # サインアップ画面に同期項目の選択を表示するか
        "choose_what_to_sync_checkbox": True,
        # 外部リンクをテキストに変換するか
        "convert_external_links_to_text": False,
        # *_complete 画面にマーケティング用の案内を表示するか
        "email_verification_marketing_snippet": True,
        # 他タブからのサインイン通知を処理するか
        "handle_signed_in_notification": True,
        "signup": True,
        # *_complete 画面に同期設定ボタンを表示するか
        "sync_preferences_notification": False,
    })

    BEHAVIOR_OVERRIDES: ClassVar[Mapping[str, Behavior]] = MappingProxyType({})
    CAPABILITY_OVERRIDES: ClassVar[Mapping[str, Any]] = MappingProxyType({})

    QUERY_PARAMETERS: ClassVar[Mapping[str, QueryParameter]] = MappingProxyType({
        "automatedBrowser": boolean("automated_browser"),
    })

    def __init__(
        self,
        relier: Relier,
        window: Optional[Window] = None,
        correlation_store: Optional[CorrelationStore] = None,
        settings: Optional[BrokerSettings] = None,
        behaviors: Optional[Mapping[str, Behavior]] = None,
        capabilities: Optional[Mapping[str, Any]] = None,
    ):
        """ブローカーを初期化

        Args:
            relier: 認証を要求しているRP
            window: ホストウィンドウ（省略時はルートパス）
            correlation_store: 検証相関ストア
            settings: ブローカー設定
            behaviors: 呼び出し側によるビヘイビアの上書き
            capabilities: 呼び出し側によるケイパビリティの上書き
        """
        self.relier = relier
        self.window = window or Window()
        self.settings = settings or BrokerSettings()
        self._correlation_store = correlation_store or KeyringCorrelationStore(
            keyring_service=self.settings.keyring_service,
            fallback_path=self.settings.correlation_fallback_path,
        )

        self._behaviors = BehaviorRegistry(
            layer_defaults(
                self.DEFAULT_BEHAVIORS,
                *self._class_layers("BEHAVIOR_OVERRIDES"),
                behaviors,
            )
        )
        self._capabilities = CapabilityRegistry(
            layer_defaults(
                self.DEFAULT_CAPABILITIES,
                *self._class_layers("CAPABILITY_OVERRIDES"),
                capabilities,
                self.settings.capability_overrides,
            )
        )

        self._imported: Dict[str, Any] = {}
        self._is_force_auth = False

    @classmethod
    def _class_layers(cls, attribute: str) -> List[Mapping[str, Any]]:
        """基底クラスから順に、各クラスが自身で宣言した上書きを集める"""
        return [
            klass.__dict__[attribute]
            for klass in reversed(cls.__mro__)
            if attribute in klass.__dict__
        ]

    # -- ビヘイビア --------------------------------------------------------

    def set_behavior(self, behavior_name: str, value: Behavior) -> None:
        self._behaviors.set(behavior_name, value)

    def get_behavior(self, behavior_name: str) -> Behavior:
        """ビヘイビアを取得する

        Raises:
            BehaviorNotFoundError: 未登録の名前の場合
        """
        return self._behaviors.get(behavior_name)

    # -- ケイパビリティ ----------------------------------------------------

    def has_capability(self, capability_name: str) -> bool:
        """ケイパビリティが設定済みかつ真値であるか"""
        return (
            self._capabilities.has(capability_name)
            and bool(self._capabilities.get(capability_name))
        )

    def set_capability(self, capability_name: str, capability_value: Any) -> None:
        self._capabilities.set(capability_name, capability_value)

    def unset_capability(self, capability_name: str) -> None:
        self._capabilities.unset(capability_name)

    def get_capability(self, capability_name: str) -> Any:
        return self._capabilities.get(capability_name)

    # -- 初期化 ------------------------------------------------------------

    async def fetch(self) -> None:
        """必要なデータでブローカーを初期化する

        Raises:
            QueryParameterError: 既知のクエリパラメータの値が不正な場合
        """
        self._is_force_auth = self._is_force_auth_url()
        importer = SearchParamImporter(self.QUERY_PARAMETERS)
        self._imported.update(importer.import_params(self.window.search_params))
        logger.debug(
            "Broker fetched: type=%s force_auth=%s", self.type, self._is_force_auth
        )

    def get(self, name: str) -> Any:
        """クエリパラメータから取り込んだ値"""
        return self._imported.get(name)

    def can_cancel(self) -> bool:
        """フローのキャンセルに対応しているか"""
        return False

    async def cancel(self) -> None:
        """ユーザーがフローをキャンセルした"""

    async def after_loaded(self) -> None:
        """最初の画面の描画後に呼ばれる。RPへの通知に使える。"""

    # -- ライフサイクルフック ---------------------------------------------

    async def _resolve(self, hook_name: str) -> Behavior:
        behavior = self.get_behavior(hook_name)
        logger.debug("Broker hook %s resolved to %s", hook_name, behavior.type.value)
        return behavior

    async def before_sign_in(self, account: Account) -> Behavior:
        """サインイン前に呼ばれる。サインインの抑止に使える。"""
        return await self._resolve("before_sign_in")

    async def after_sign_in(self, account: Account) -> Behavior:
        """サインイン後に呼ばれる。"""
        return await self._resolve("after_sign_in")

    async def after_sign_in_confirmation_poll(self, account: Account) -> Behavior:
        """サインイン確認のポーリング完了後に呼ばれる。"""
        return await self._resolve("after_sign_in_confirmation_poll")

    async def after_force_auth(self, account: Account) -> Behavior:
        return await self._resolve("after_force_auth")

    async def after_sign_up(self, account: Account) -> Behavior:
        """サインアップ後、確認待ち画面へ遷移する前に呼ばれる。"""
        return await self._resolve("after_sign_up")

    async def before_sign_up_confirmation_poll(self, account: Account) -> Behavior:
        return await self._resolve("before_sign_up_confirmation_poll")

    async def after_sign_up_confirmation_poll(self, account: Account) -> Behavior:
        return await self._resolve("after_sign_up_confirmation_poll")

    async def after_complete_sign_up(self, account: Account) -> Behavior:
        """確認タブでメール確認が済んだ後に呼ばれる

        相関レコードを必ず削除してからビヘイビアを返す。
        """
        await self.unpersist_verification_data(account)
        return await self._resolve("after_complete_sign_up")

    async def after_reset_password_confirmation_poll(self, account: Account) -> Behavior:
        return await self._resolve("after_reset_password_confirmation_poll")

    async def after_complete_reset_password(self, account: Account) -> Behavior:
        """確認タブでパスワードリセットが済んだ後に呼ばれる"""
        await self.unpersist_verification_data(account)
        return await self._resolve("after_complete_reset_password")

    async def after_change_password(self, account: Account) -> Behavior:
        return await self._resolve("after_change_password")

    async def after_delete_account(self, account: Account) -> Behavior:
        return await self._resolve("after_delete_account")

    # -- 検証データ --------------------------------------------------------

    def _verification_for(self, account: Account) -> SameBrowserVerification:
        return SameBrowserVerification.for_account(
            self._correlation_store, account, self.settings.verification_namespace
        )

    async def persist_verification_data(self, account: Account) -> None:
        """確認ポーリングの前に、確認タブが必要とするデータを保存する

        同じブラウザで確認された場合は同じ context が使われる。別の
        ブラウザで確認された場合は既定の context になる。
        """
        await self._verification_for(account).persist(self.relier.context)

    async def unpersist_verification_data(self, account: Account) -> None:
        """アカウントの相関レコードを削除する（冪等）"""
        await self._verification_for(account).clear()

    # -- リンクとURL -------------------------------------------------------

    def transform_link(self, link: str) -> str:
        """サインイン/サインアップのリンクを必要に応じて変換する"""
        if not link.startswith("/"):
            link = "/" + link
        return link

    def is_force_auth(self) -> bool:
        """RPが特定のメールアドレスでの認証を強制しているか"""
        return self._is_force_auth

    def _is_force_auth_url(self) -> bool:
        return self.window.pathname in self.settings.force_auth_paths

    def is_automated_browser(self) -> bool:
        """自動テストのブラウザで実行されているか"""
        return bool(self.get("automated_browser"))
