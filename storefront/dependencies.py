# storefront/dependencies.py
"""
Used by FastAPI for dependency injection - Database, Identity & Auth
It verifies who the caller is and builds the per-request collaborators
"""

import uuid
from typing import Annotated, Optional

from fastapi import Depends, Header
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from storefront.config import Settings, get_settings
from storefront.errors import AuthError, AuthorizationError, NotFoundError, UnexpectedError
from storefront.identity import Identity, IdentityGateway
from storefront.models import Profile, Role
from storefront.notifications import Notifier, build_notifier
from storefront.utils.db import get_session
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def get_identity_gateway(
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> IdentityGateway:
    return IdentityGateway(session, settings)


def get_notifier(settings: Settings = Depends(get_settings)) -> Notifier:
    return build_notifier(settings)


# 1. Bearer token
def get_bearer_token(authorization: Annotated[Optional[str], Header()] = None) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthError("Access token required")

    token = authorization[len("Bearer "):].strip()
    if not token:
        raise AuthError("Access token required")
    return token


# 2. Auth Guard
def get_current_user(
    token: str = Depends(get_bearer_token),
    identity: IdentityGateway = Depends(get_identity_gateway),
) -> Identity:
    try:
        return identity.verify_token(token)
    except AuthError:
        logger.info("auth.rejected", reason="invalid_token")
        raise
    except SQLAlchemyError as e:
        raise UnexpectedError("Internal server error", details=str(e)) from e


# 3. Role Guard
def require_admin(
    user: Identity = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> Identity:
    try:
        profile = session.get(Profile, user.id)
    except SQLAlchemyError as e:
        raise UnexpectedError("Internal server error", details=str(e)) from e

    if not profile or profile.role != Role.ADMIN:
        logger.info("auth.rejected", reason="not_admin", user_id=str(user.id))
        raise AuthorizationError("Access denied. Administrator privileges required.")

    return user


CurrentUser = Annotated[Identity, Depends(get_current_user)]
AdminUser = Annotated[Identity, Depends(require_admin)]
DbSession = Annotated[Session, Depends(get_session)]


def parse_id(value: str, resource: str) -> uuid.UUID:
    """Path ids that aren't UUIDs can't match a row, so they are simply not found"""
    try:
        return uuid.UUID(value)
    except ValueError:
        raise NotFoundError(f"{resource} not found")
