"""
API Dependencies

FastAPI dependency injection for authentication and common services.

Security: JWT tokens are issued by the external identity service and
verified here with PyJWT against ``JWT_SECRET``. Never decode without
verification. The token's ``role`` claim becomes the Actor's role; the
internal ``system`` role can never come from a token.
"""

import logging
from typing import Annotated, Optional
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.config.settings import get_settings
from app.domain.workflow import Actor, Role


logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

TOKEN_ROLES = frozenset(role for role in Role if role != Role.SYSTEM)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(token: str) -> dict:
    """Verify a JWT with the shared secret and return its claims."""
    settings = get_settings()
    if not settings.jwt_secret:
        raise _unauthorized("Authentication is not configured")

    options = {"require": ["exp", "sub"]}
    if not settings.jwt_audience:
        options["verify_aud"] = False
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        options=options,
    )


def actor_from_claims(claims: dict) -> Actor:
    """
    Build the acting principal from verified token claims.

    Raises:
        HTTPException 401: missing/invalid ``sub``, or a role the token may not carry
    """
    try:
        user_id = UUID(str(claims.get("sub")))
    except ValueError:
        raise _unauthorized("Invalid token: missing user ID")

    try:
        role = Role(claims.get("role"))
    except ValueError:
        raise _unauthorized("Invalid token: unknown role")
    if role not in TOKEN_ROLES:
        logger.warning("Rejected token for %s claiming role %s", user_id, role.value)
        raise _unauthorized("Invalid token: role not allowed")

    hospital_id = claims.get("hospital_id")
    try:
        hospital_id = UUID(str(hospital_id)) if hospital_id else None
    except ValueError:
        raise _unauthorized("Invalid token: malformed hospital_id")

    return Actor(user_id=user_id, role=role, hospital_id=hospital_id)


async def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Actor:
    """
    Extract and verify the acting principal from a bearer JWT.

    Returns:
        Authenticated Actor (user id, role, optional hospital id).

    Raises:
        HTTPException 401: token missing, expired, or invalid.
    """
    if not credentials:
        raise _unauthorized("Missing authorization token")

    try:
        claims = decode_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError as e:
        logger.warning("JWT verification failed: %s", e)
        raise _unauthorized("Invalid or unverifiable token")

    return actor_from_claims(claims)


async def get_admin_actor(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Require an administrator."""
    if actor.role != Role.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator role required",
        )
    return actor


ActorDep = Annotated[Actor, Depends(get_current_actor)]
AdminDep = Annotated[Actor, Depends(get_admin_actor)]


# =============================================================================
# Re-export DB dependencies for a single import source
# Routers should import from api.dependencies, not db.dependencies directly.
# =============================================================================
from app.infrastructure.db.dependencies import (  # noqa: E402, F401
    SessionDep,
    PlacementServiceDep,
    WorkflowFacadeDep,
    SweepSchedulerDep,
    NotificationRepoDep,
)
