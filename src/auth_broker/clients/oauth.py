"""httpxベースのOAuthクライアント。"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from auth_broker.clients.base import OAuthClient
from auth_broker.errors import ConfigurationException, ErrorCode, create_config_error

if TYPE_CHECKING:
    from auth_broker.config.settings import BrokerSettings

logger = logging.getLogger(__name__)

AUTHORIZATION_PATH = "/v1/authorization"


class HttpOAuthClient(OAuthClient):
    """OAuthサーバーの認可エンドポイントを呼び出す。

    通信エラーやHTTPエラーはそのまま呼び出し元へ伝播する。リトライは
    行わない。
    """

    def __init__(
        self,
        server_url: str,
        timeout_seconds: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """HttpOAuthClientを初期化する。

        Args:
            server_url: OAuthサーバーのベースURL。
            timeout_seconds: リクエストのタイムアウト。
            http_client: 共有するhttpxクライアント。
        """

        self._server_url = server_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._http_client = http_client

    @classmethod
    def from_settings(
        cls,
        settings: BrokerSettings,
        http_client: httpx.AsyncClient | None = None,
    ) -> HttpOAuthClient:
        """設定の oauth_server_url と oauth_timeout からクライアントを作る。

        Raises:
            ConfigurationException: oauth_server_url が設定されていない場合。
        """

        if not settings.oauth_server_url:
            raise ConfigurationException(
                create_config_error(
                    ErrorCode.CONFIG_INVALID_VALUE,
                    "oauth_server_url が設定されていません",
                    details={"setting": "oauth_server_url"},
                )
            )
        return cls(
            settings.oauth_server_url,
            timeout_seconds=settings.oauth_timeout,
            http_client=http_client,
        )

    @property
    def authorization_url(self) -> str:
        return f"{self._server_url}{AUTHORIZATION_PATH}"

    @property
    def timeout_seconds(self) -> float:
        return self._timeout_seconds

    async def get_code(self, params: dict[str, Any]) -> dict[str, Any] | None:
        url = self.authorization_url
        if self._http_client is not None:
            response = await self._http_client.post(url, json=params)
        else:
            async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                response = await client.post(url, json=params)

        response.raise_for_status()
        logger.debug("Authorization code issued for client_id=%s", params.get("client_id"))
        return response.json()
