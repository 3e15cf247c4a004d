"""Request principal.

Authentication is stubbed: the UI sends the signed-in username and role in
``X-User`` / ``X-Role`` headers. Capability checks happen here, at the HTTP
boundary, and nowhere else.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException

from . import config


@dataclass(frozen=True)
class Principal:
    username: Optional[str] = None
    role: str = "guest"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def with_configured_role(account):
    """Give accounts listed in ``ADMIN_USERNAMES`` the admin role."""
    if account.username in config.ADMIN_USERNAMES and account.role != "admin":
        return account.model_copy(update={"role": "admin"})
    return account


def get_principal(
    x_user: Optional[str] = Header(default=None),
    x_role: Optional[str] = Header(default=None),
) -> Principal:
    if not x_user:
        return Principal()
    role = (x_role or "user").lower()
    if role not in ("user", "admin"):
        raise HTTPException(status_code=400, detail=f"Unknown role: {x_role}")
    return Principal(username=x_user, role=role)


def require_user(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.username:
        raise HTTPException(status_code=401, detail="Sign in to view your history.")
    return principal


def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="Admin role required.")
    return principal
