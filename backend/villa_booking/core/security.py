"""
Caller identity.

Authentication happens upstream (API gateway / session service); this service
trusts the ``X-User-Id`` and ``X-User-Role`` headers it forwards.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

ROLES = ("guest", "host", "admin")


@dataclass(frozen=True)
class Actor:
    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


async def get_current_actor(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: str = Header(default="guest"),
) -> Actor:
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing caller identity",
        )
    role = x_user_role.lower()
    if role not in ROLES:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown role: {x_user_role}",
        )
    return Actor(user_id=x_user_id, role=role)


def require_role(*roles: str):
    """Dependency factory restricting an endpoint to the given roles."""

    async def _check(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role: {', '.join(roles)}",
            )
        return actor

    return _check
