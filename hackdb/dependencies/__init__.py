from hackdb.dependencies.auth import (
    RedirectRequired,
    get_session_state,
    get_settings,
    require_edit_permission,
    require_guest,
    require_login,
)

__all__ = [
    "RedirectRequired",
    "get_session_state",
    "get_settings",
    "require_login",
    "require_edit_permission",
    "require_guest",
]
