"""検証相関ストアの公開API。"""

from __future__ import annotations

from auth_broker.verification.same_browser import SameBrowserVerification, VerificationRecord
from auth_broker.verification.store import (
    CorrelationStore,
    KeyringCorrelationStore,
    MemoryCorrelationStore,
)

__all__ = [
    "CorrelationStore",
    "KeyringCorrelationStore",
    "MemoryCorrelationStore",
    "SameBrowserVerification",
    "VerificationRecord",
]
