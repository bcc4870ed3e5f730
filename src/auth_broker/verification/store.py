"""検証相関レコードの保存先を提供する。

同じブラウザ（プロファイル）の別タブから読めることが前提で、別ブラウザから
は読めない。そのため読み出しは常に「存在しない」可能性がある。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
import json
import logging
import os
from pathlib import Path
import threading
from typing import Any, Callable
import warnings

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

logger = logging.getLogger(__name__)


def _record_key(namespace: str, key: str) -> str:
    return f"{namespace}:{key}"


class CorrelationStore(ABC):
    """検証相関ストアの抽象基底クラス。"""

    @abstractmethod
    async def persist(self, namespace: str, key: str, value: dict[str, Any]) -> None:
        """レコードを書き込む（後勝ち）。"""

    @abstractmethod
    async def read(self, namespace: str, key: str) -> dict[str, Any] | None:
        """レコードを読み出す。存在しない場合はNone。"""

    @abstractmethod
    async def clear(self, namespace: str, key: str) -> None:
        """レコードを削除する。存在しなくてもエラーにしない。"""


class MemoryCorrelationStore(CorrelationStore):
    """プロセス内の辞書に保存するストア。"""

    def __init__(self) -> None:
        self._records: dict[str, str] = {}

    async def persist(self, namespace: str, key: str, value: dict[str, Any]) -> None:
        self._records[_record_key(namespace, key)] = json.dumps(value, ensure_ascii=False)

    async def read(self, namespace: str, key: str) -> dict[str, Any] | None:
        stored = self._records.get(_record_key(namespace, key))
        if stored is None:
            return None
        return json.loads(stored)

    async def clear(self, namespace: str, key: str) -> None:
        self._records.pop(_record_key(namespace, key), None)


class _FallbackRecordFile:
    """keyringの代わりに使うJSONファイル。

    ファイルは所有者のみ読み書きできる（0600）。
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}

        os.chmod(self.path, 0o600)
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            warnings.warn(
                f"検証データの保存ファイルが壊れているため空として扱います: {self.path}",
                RuntimeWarning,
                stacklevel=3,
            )
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(name): str(payload) for name, payload in data.items()}

    def update(self, mutate: Callable[[dict[str, str]], bool]) -> None:
        """読み込んだレコードを mutate で変更し、変更があれば書き戻す。"""

        records = self.load()
        if not mutate(records):
            return
        self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        self.path.write_text(json.dumps(records, ensure_ascii=False, indent=2), encoding="utf-8")
        os.chmod(self.path, 0o600)


class KeyringCorrelationStore(CorrelationStore):
    """OSのkeyringにレコードを保存する。

    keyringが使えない環境ではローカルのJSONファイルに切り替える。
    keyringの呼び出しとファイル操作はワーカースレッドで行うため、
    レコード操作は1つのロックで直列化する。
    """

    def __init__(self, keyring_service: str = "auth_broker", fallback_path: Path | None = None) -> None:
        """KeyringCorrelationStoreを初期化する。

        Args:
            keyring_service: keyringに保存する際のサービス名。
            fallback_path: keyringが使えない場合の保存先。
        """

        self._keyring_service = keyring_service
        self._fallback = _FallbackRecordFile(
            fallback_path or Path.home() / ".auth_broker" / "verification.json"
        )
        self._use_keyring = True
        self._lock = threading.Lock()

    @property
    def uses_keyring(self) -> bool:
        return self._use_keyring

    async def persist(self, namespace: str, key: str, value: dict[str, Any]) -> None:
        payload = json.dumps(value, ensure_ascii=False)
        await asyncio.to_thread(self._set_record, _record_key(namespace, key), payload)

    async def read(self, namespace: str, key: str) -> dict[str, Any] | None:
        stored = await asyncio.to_thread(self._get_record, _record_key(namespace, key))
        if stored is None:
            return None
        try:
            value = json.loads(stored)
        except json.JSONDecodeError:
            logger.warning("Discarding malformed verification record for namespace %s", namespace)
            return None
        if not isinstance(value, dict):
            return None
        return value

    async def clear(self, namespace: str, key: str) -> None:
        await asyncio.to_thread(self._delete_record, _record_key(namespace, key))

    def _set_record(self, name: str, payload: str) -> None:
        with self._lock:
            if self._try_keyring(keyring.set_password, name, payload):
                return

            def put(records: dict[str, str]) -> bool:
                records[name] = payload
                return True

            self._fallback.update(put)

    def _get_record(self, name: str) -> str | None:
        with self._lock:
            if self._use_keyring:
                try:
                    return keyring.get_password(self._keyring_service, name)
                except KeyringError as exc:
                    self._disable_keyring(exc)
            return self._fallback.load().get(name)

    def _delete_record(self, name: str) -> None:
        with self._lock:
            try:
                if self._try_keyring(keyring.delete_password, name):
                    return
            except PasswordDeleteError:
                # 存在しないレコード
                return
            self._fallback.update(lambda records: records.pop(name, None) is not None)

    def _try_keyring(self, operation: Callable[..., Any], name: str, *args: str) -> bool:
        """keyringで操作できた場合にTrue。失敗したらファイルへ切り替える。"""

        if not self._use_keyring:
            return False
        try:
            operation(self._keyring_service, name, *args)
        except PasswordDeleteError:
            raise
        except KeyringError as exc:
            self._disable_keyring(exc)
            return False
        return True

    def _disable_keyring(self, exc: Exception) -> None:
        warnings.warn(
            f"keyringが利用できないため、検証データを {self._fallback.path} に保存します。",
            RuntimeWarning,
            stacklevel=4,
        )
        logger.debug("keyring unavailable: %s", exc)
        self._use_keyring = False
