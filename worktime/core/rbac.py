from worktime.core.errors import Forbidden


def is_admin_like(role: str) -> bool:
    return role in {"admin", "manager", "hr"}


def require_admin_like(user: dict) -> None:
    if not is_admin_like(str(user.get("role", ""))):
        raise Forbidden("Forbidden")


def can_view_user_sessions(viewer: dict, target: dict) -> bool:
    """Admins see everyone in the company, supervisors their own people, users themselves."""
    if str(viewer.get("company_id")) != str(target.get("company_id")):
        return False
    if str(viewer.get("id")) == str(target.get("id")):
        return True
    if is_admin_like(str(viewer.get("role", ""))):
        return True
    return str(viewer.get("id")) in {str(s) for s in target.get("supervisor_ids", [])}
