from fastapi import HTTPException, Depends, status
from command_center.models import User, Role
from command_center.security.auth import require_user

def require_role(*roles: Role):
    """
    Dependency factory that enforces the caller holds one of `roles`.
    401 comes from require_user; a valid token with the wrong role gets 403.
    """
    allowed = {r.value for r in roles}

    def _dependency(user: User = Depends(require_user)) -> User:
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Forbidden - {' or '.join(sorted(allowed)).title()} role required",
            )
        return user

    return _dependency

require_admin = require_role(Role.ADMIN)
require_editor = require_role(Role.ADMIN, Role.EDITOR)

def can_access(user: User, owner_id: int | None) -> bool:
    """Owner or elevated."""
    return user.is_admin or owner_id == user.id
