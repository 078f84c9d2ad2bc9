from flask import abort, g


def parse_bool(value):
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    value = str(value).strip().lower()
    return value in {"1", "true", "yes", "y", "on", "t"}


def parse_float(value):
    if value in (None, "", " "):
        return None
    try:
        return float(str(value).replace(",", "."))
    except (ValueError, TypeError):
        return None


def parse_int(value):
    if value in (None, "", " "):
        return None
    try:
        return int(str(value).strip())
    except (ValueError, TypeError):
        return None


def require_admin():
    user = getattr(g, "current_user", None)
    if not user or not getattr(user, "is_authenticated", False) or not getattr(user, "is_admin", False):
        abort(403)


def current_user_id():
    user = getattr(g, "current_user", None)
    if not user or not getattr(user, "is_authenticated", False):
        return None
    return user.id
