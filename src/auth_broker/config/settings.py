"""Pydantic V2 ベースのブローカー設定モデル"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from auth_broker.constants import (
    FORCE_AUTH_PATHS,
    OAUTH_CODE_LENGTH,
    OAUTH_ROUTE_PREFIX,
    VERIFICATION_NAMESPACE,
)
from auth_broker.errors import BrokerError, ConfigurationException, ErrorCode

logger = logging.getLogger(__name__)


class BrokerSettings(BaseSettings):
    """認証ブローカーの統合設定"""

    model_config = SettingsConfigDict(
        env_prefix="AUTH_BROKER_",
        env_file=".env",
        extra="forbid",
    )

    # ルーティング設定
    force_auth_paths: List[str] = Field(default_factory=lambda: list(FORCE_AUTH_PATHS))
    oauth_route_prefix: str = OAUTH_ROUTE_PREFIX

    # 検証データ設定
    verification_namespace: str = Field(default=VERIFICATION_NAMESPACE, min_length=1)
    keyring_service: str = Field(default="auth_broker", min_length=1)
    correlation_fallback_path: Optional[Path] = None

    # OAuth 設定
    oauth_code_length: int = Field(default=OAUTH_CODE_LENGTH, ge=1)
    oauth_server_url: Optional[str] = None
    oauth_timeout: float = Field(default=30.0, gt=0)

    # ケイパビリティの上書き（呼び出し側の指定よりも優先）
    capability_overrides: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ) -> Tuple[Any, ...]:
        """設定ソースの優先順位をカスタマイズ（env > dotenv > init）"""
        return (
            env_settings,
            dotenv_settings,
            init_settings,
            file_secret_settings,
        )

    @field_validator("oauth_route_prefix")
    @classmethod
    def validate_route_prefix(cls, value: str) -> str:
        """ルートプレフィックスは / で始まり / で終わらない"""
        if not value.startswith("/") or (len(value) > 1 and value.endswith("/")):
            raise ValueError(
                f"oauth_route_prefix は '/oauth' の形式で指定してください: {value!r}"
            )
        return value

    @field_validator("force_auth_paths")
    @classmethod
    def validate_force_auth_paths(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("force_auth_paths は1つ以上必要です")
        for path in value:
            if not path.startswith("/"):
                raise ValueError(f"force_auth_paths のパスは '/' で始まる必要があります: {path!r}")
        return value

    @classmethod
    def from_yaml(cls, path: Union[str, Path], **overrides: Any) -> "BrokerSettings":
        """YAMLファイルから設定を読み込む

        環境変数はファイルの値よりも優先される。

        Args:
            path: 設定ファイルのパス
            **overrides: ファイルの値を上書きする値

        Returns:
            BrokerSettings: 読み込んだ設定

        Raises:
            ConfigurationException: ファイルが読めない、または形式が不正な場合
        """
        config_path = Path(path)
        try:
            with config_path.open("r", encoding="utf-8") as file:
                data = yaml.safe_load(file) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationException(
                BrokerError(
                    code=ErrorCode.CONFIG_INVALID_VALUE.value,
                    message=f"設定ファイルを読み込めませんでした: {config_path}",
                    details={"path": str(config_path), "error": str(exc)},
                )
            ) from exc

        if not isinstance(data, dict):
            raise ConfigurationException(
                BrokerError(
                    code=ErrorCode.CONFIG_INVALID_VALUE.value,
                    message=f"設定ファイルのトップレベルはマッピングである必要があります: {config_path}",
                    details={"path": str(config_path)},
                )
            )

        data.update(overrides)
        logger.debug("Loaded broker settings from %s", config_path)
        return cls(**data)
