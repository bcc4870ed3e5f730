"""同一ブラウザでの検証相関レコード。

メール確認リンクが別タブで開かれたとき、元のタブのUIコンテキストを
復元するために使う。別ブラウザで開かれた場合はレコードが存在しない
ので、既定のコンテキストにフォールバックする。
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
import logging
from typing import Any

from auth_broker.errors import UnexpectedError
from auth_broker.models import Account
from auth_broker.verification.store import CorrelationStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationRecord:
    """相関レコードの内容。"""

    email: str | None = None
    context: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VerificationRecord":
        return cls(email=data.get("email"), context=data.get("context"))


class SameBrowserVerification:
    """(namespace, uid) をキーとする相関レコードを扱う。

    uidは削除後に再利用されうるため、メールアドレスではなくuidをキーに
    含める。
    """

    def __init__(self, store: CorrelationStore, namespace: str, uid: str, email: str | None = None) -> None:
        if not uid:
            raise UnexpectedError("account uid is required to correlate verification data")
        self._store = store
        self.namespace = namespace
        self.uid = uid
        self.email = email

    @classmethod
    def for_account(cls, store: CorrelationStore, account: Account, namespace: str) -> "SameBrowserVerification":
        return cls(store, namespace, account.uid or "", account.email)

    async def persist(self, context: str | None) -> None:
        """レコードを書き込む。"""

        record = VerificationRecord(email=self.email, context=context)
        await self._store.persist(self.namespace, self.uid, asdict(record))
        logger.debug("Persisted verification data: namespace=%s", self.namespace)

    async def clear(self) -> None:
        """レコードを削除する。存在しなくてもよい。"""

        await self._store.clear(self.namespace, self.uid)
        logger.debug("Cleared verification data: namespace=%s", self.namespace)

    @staticmethod
    async def load(store: CorrelationStore, namespace: str, uid: str) -> VerificationRecord:
        """確認ページからレコードを読み出す。

        Args:
            store: 相関ストア。
            namespace: 名前空間。
            uid: アカウントのuid。

        Returns:
            保存されたレコード。存在しない場合は既定のレコード。
        """

        data = await store.read(namespace, uid)
        if data is None:
            # 別ブラウザで確認された場合は正常系として既定値を使う
            logger.debug("No verification data for namespace=%s; using default context", namespace)
            return VerificationRecord()
        return VerificationRecord.from_dict(data)
