# This project was developed with assistance from AI tools.
"""
Session provider: turns a Bearer JWT into a ``UserContext``.

Tokens are verified against the identity provider's JWKS (RS256/ES256).
The engine never reads session state itself; routes receive the user
through the ``CurrentUser`` dependency and pass it down explicitly.

Set AUTH_DISABLED=true to bypass validation (tests / local dev).
"""

import logging
import time
from typing import Annotated

import httpx
import jwt
from fastapi import Depends, HTTPException, Request, status
from leaddb.enums import UserRole

from ..core.config import settings
from ..schemas.auth import DataScope, TokenPayload, UserContext

logger = logging.getLogger(__name__)

_SIGNING_ALGORITHMS = ["RS256", "ES256"]


class JWKSCache:
    """Key set fetched over HTTP and kept for ``JWKS_CACHE_TTL`` seconds."""

    def __init__(self) -> None:
        self._keys: jwt.PyJWKSet | None = None
        self._fetched_at = 0.0

    def clear(self) -> None:
        self._keys = None
        self._fetched_at = 0.0

    def _load(self, force_refresh: bool) -> jwt.PyJWKSet:
        stale = (time.time() - self._fetched_at) > settings.JWKS_CACHE_TTL
        if self._keys is None or stale or force_refresh:
            response = httpx.get(settings.JWKS_URL, timeout=5)
            response.raise_for_status()
            self._keys = jwt.PyJWKSet.from_dict(response.json())
            self._fetched_at = time.time()
        return self._keys

    def key_for(self, kid: str | None) -> jwt.PyJWK:
        """Signing key for ``kid``; refetches once on a miss (key rotation)."""
        for force_refresh in (False, True):
            for key in self._load(force_refresh).keys:
                if key.key_id == kid:
                    return key
        raise jwt.InvalidTokenError(f"No signing key for kid={kid}")


_jwks = JWKSCache()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _bearer_token(request: Request) -> str | None:
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme != "Bearer" or not token:
        return None
    return token


def _decode_token(token: str) -> TokenPayload:
    """Verify signature (and issuer, when configured) and return the claims."""
    try:
        kid = jwt.get_unverified_header(token).get("kid")
        signing_key = _jwks.key_for(kid)
    except httpx.HTTPError as exc:
        logger.error("Failed to fetch JWKS from %s: %s", settings.JWKS_URL, exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service unavailable",
        ) from exc

    claims = jwt.decode(
        token,
        signing_key.key,
        algorithms=_SIGNING_ALGORITHMS,
        issuer=settings.JWT_ISSUER,
        options={"verify_aud": False, "verify_iss": settings.JWT_ISSUER is not None},
    )
    return TokenPayload(**claims)


def _resolve_role(payload: TokenPayload) -> UserRole:
    """Pick the most privileged pipeline role the token grants.

    Roles are read from ``realm_access.roles`` and a top-level ``roles``
    claim. ``UserRole`` is declared most privileged first.
    """
    granted = set(payload.realm_access.get("roles", [])) | set(payload.roles)
    matches = [role for role in UserRole if role.value in granted]
    if not matches:
        logger.warning("User %s has no pipeline role (granted: %s)", payload.sub, sorted(granted))
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No recognized role assigned",
        )
    if len(matches) > 1:
        logger.info(
            "User %s holds roles %s, acting as %s",
            payload.sub,
            [r.value for r in matches],
            matches[0].value,
        )
    return matches[0]


def _build_data_scope(role: UserRole, payload: TokenPayload) -> DataScope:
    """Which leads the user may see: own lead, referred leads, or everything."""
    if role in UserRole.admin_roles():
        return DataScope(full_pipeline=True)
    if role == UserRole.PARTNER:
        return DataScope(partner_id=payload.partner_id or payload.sub)
    if role == UserRole.STUDENT:
        return DataScope(own_data_only=True, user_id=payload.sub)
    return DataScope()


def user_from_claims(payload: TokenPayload) -> UserContext:
    role = _resolve_role(payload)
    return UserContext(
        user_id=payload.sub,
        role=role,
        email=payload.email,
        name=payload.name or payload.preferred_username,
        data_scope=_build_data_scope(role, payload),
    )


_DEV_USER = UserContext(
    user_id="dev-user",
    role=UserRole.ADMIN,
    email="dev@lead-pipeline.local",
    name="Dev User",
    data_scope=DataScope(full_pipeline=True),
)


async def get_current_user(request: Request) -> UserContext:
    """FastAPI dependency returning the authenticated user.

    With AUTH_DISABLED=true every request acts as a dev admin.
    """
    if settings.AUTH_DISABLED:
        return _DEV_USER

    token = _bearer_token(request)
    if token is None:
        raise _unauthorized("Missing authentication token")

    try:
        payload = _decode_token(token)
    except jwt.ExpiredSignatureError as exc:
        raise _unauthorized("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        logger.info("Rejected token: %s", exc)
        raise _unauthorized("Invalid token") from exc

    return user_from_claims(payload)


CurrentUser = Annotated[UserContext, Depends(get_current_user)]


def require_roles(*allowed_roles: UserRole):
    """Dependency factory restricting a route to ``allowed_roles``."""
    allowed = frozenset(allowed_roles)

    async def _check(user: CurrentUser) -> UserContext:
        if user.role not in allowed:
            logger.warning(
                "RBAC denied: user=%s role=%s path requires %s",
                user.user_id,
                user.role.value,
                sorted(r.value for r in allowed),
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return _check


# Bulk moves and lender acceptance are back-office actions
require_admin = require_roles(*UserRole.admin_roles())
