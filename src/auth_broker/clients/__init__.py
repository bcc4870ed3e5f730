"""外部コラボレータの公開API。"""

from __future__ import annotations

from auth_broker.clients.base import AssertionLibrary, OAuthClient
from auth_broker.clients.oauth import HttpOAuthClient

__all__ = [
    "AssertionLibrary",
    "HttpOAuthClient",
    "OAuthClient",
]
