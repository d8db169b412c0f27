# pyright: reportMissingTypeStubs=false
"""
Role-based permissions for clinic staff management.

Owners may do everything, including configuring notifications; managers may
invite, edit and view staff; every other role can only view.
"""

from typing import Callable

from fastapi import Depends, HTTPException, status

from core.constants import ROLE_MANAGER, ROLE_OWNER
from models import UserProfile

_MANAGER_ACTIONS = frozenset({"invite", "edit", "view"})


def can_perform_action(role: str, action: str) -> bool:
    """Check whether a staff role may perform a staff-management action."""
    if role == ROLE_OWNER:
        return True
    if role == ROLE_MANAGER:
        return action in _MANAGER_ACTIONS
    return action == "view"


def require_action(action: str) -> Callable[..., UserProfile]:
    """
    Dependency that ensures the current staff member may perform an action.

    Args:
        action: One of "invite", "edit", "remove", "view", "configure"

    Returns:
        Dependency function that can be used with FastAPI Depends()
    """
    from auth.dependencies import get_current_profile

    def dependency(current_profile: UserProfile = Depends(get_current_profile)) -> UserProfile:
        if can_perform_action(current_profile.role, action):
            return current_profile

        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Access denied: your role cannot {action} here"
        )

    return dependency
