"""UIフローからブローカーを呼び出すヘルパー。"""

from auth_broker.flows.signin import SignInFlow

__all__ = [
    "SignInFlow",
]
