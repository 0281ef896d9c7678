"""
order_api/core/auth.py — Role-based access control
Coarse role gating: the Authorization header must equal the static secret
configured for the route's role. There is no per-user identity.
"""
from __future__ import annotations

import secrets
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from fastapi import Header, HTTPException, Request, status

from order_api.config import Settings
from order_api.core.logging import log_error


class Role(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class UnknownRoleError(Exception):
    """A route was wired with a role that has no configured secret."""


def role_secret(role: Union[Role, str], settings: Settings) -> str:
    """Return the configured secret for `role`. Raises UnknownRoleError otherwise."""
    if role == Role.CUSTOMER:
        return settings.customer_token
    if role == Role.ADMIN:
        return settings.admin_token
    raise UnknownRoleError(f"No secret configured for role {role!r}")


def _tokens_match(supplied: str, expected: str) -> bool:
    return secrets.compare_digest(
        supplied.encode("utf-8"),
        expected.encode("utf-8"),
    )


def require_role(role: Union[Role, str]) -> Callable[..., Awaitable[Role]]:
    """
    Build a dependency that admits only requests carrying `role`'s secret.
    Missing or wrong token → 401. A role without a secret is a server-side
    misconfiguration → 500, and the route handler is never reached.
    """

    async def verify_role(
        request: Request,
        authorization: Optional[str] = Header(None, alias="Authorization"),
    ) -> Role:
        settings: Settings = request.app.state.settings
        try:
            expected = role_secret(role, settings)
        except UnknownRoleError as exc:
            log_error("auth", "require_role", exc, {"path": request.url.path})
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Internal Server Error",
            )

        if not authorization or not _tokens_match(authorization, expected):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Unauthorized",
            )
        return Role(role)

    return verify_role
