"""ブローカー全体で共有する定数"""

ACCESS_TYPE_OFFLINE = "offline"

OAUTH_ACTION_SIGNIN = "signin"
OAUTH_ACTION_SIGNUP = "signup"

# OAuth認可コードは64桁の16進文字列
OAUTH_CODE_LENGTH = 64

FORCE_AUTH_PATHS = ("/force_auth", "/oauth/force_auth")
OAUTH_ROUTE_PREFIX = "/oauth"

VERIFICATION_NAMESPACE = "context"
OAUTH_SESSION_KEY = "oauth"

DEFAULT_SIGNIN_DESTINATION = "settings"
