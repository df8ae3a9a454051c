# storefront/routers/auth.py

"""Registration, login/logout and the caller's own profile."""

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from storefront.dependencies import CurrentUser, DbSession, get_bearer_token, get_identity_gateway
from storefront.errors import AuthError, DomainError, StoreError
from storefront.identity import IdentityGateway
from storefront.models import Profile, Role
from storefront.schemas import LoginRequest, ProfileRead, RegisterRequest
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=201)
def register(
    body: RegisterRequest,
    session: DbSession,
    identity: IdentityGateway = Depends(get_identity_gateway),
):
    email = body.email.lower()

    # 1. Refuse emails that already have a profile, before any account is created
    existing = session.exec(select(Profile.id).where(Profile.email == email).limit(1)).first()
    if existing:
        raise DomainError("Email already in use", details="This email is already registered")

    # 2. Create the account at the identity provider
    try:
        user = identity.sign_up(email, body.password, full_name=body.full_name)
    except DomainError as e:
        raise DomainError("Failed to create user", details=e.message) from e

    # 3. Create the profile
    try:
        session.add(Profile(id=user.id, email=email, full_name=body.full_name, role=Role.CUSTOMER))
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("user.profile_failed", user_id=str(user.id), error=str(e))
        raise StoreError(
            "Failed to create user profile",
            details="User was created but the profile could not be saved. Please contact support.",
            user_id=str(user.id),
        ) from e

    logger.info("user.registered", user_id=str(user.id))
    return {
        "message": "User registered successfully",
        "user": {"id": str(user.id), "email": user.email, "full_name": body.full_name},
    }


@router.post("/login")
def login(
    body: LoginRequest,
    session: DbSession,
    identity: IdentityGateway = Depends(get_identity_gateway),
):
    try:
        auth = identity.sign_in(body.email, body.password)
    except AuthError as e:
        raise DomainError("Invalid credentials", details=e.message) from e

    profile = session.get(Profile, auth.user.id)

    return {
        "message": "Login successful",
        "user": {
            **auth.user.model_dump(mode="json"),
            "profile": ProfileRead.model_validate(profile).model_dump(mode="json") if profile else None,
        },
        "session": {
            "access_token": auth.access_token,
            "token_type": auth.token_type,
            "expires_at": auth.expires_at.isoformat(),
        },
    }


@router.post("/logout")
def logout(
    user: CurrentUser,
    token: str = Depends(get_bearer_token),
    identity: IdentityGateway = Depends(get_identity_gateway),
):
    identity.sign_out(token)
    logger.info("user.logged_out", user_id=str(user.id))
    return {"message": "Logout successful"}


@router.get("/profile", response_model=ProfileRead)
def get_profile(user: CurrentUser, session: DbSession):
    profile = session.get(Profile, user.id)
    if not profile:
        raise DomainError("Failed to load profile")
    return ProfileRead.model_validate(profile)
