# storefront/routers/users.py

"""User administration. Every route here needs an admin caller."""

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, select

from storefront.dependencies import AdminUser, DbSession, get_identity_gateway, parse_id
from storefront.errors import DomainError, NotFoundError, StoreError
from storefront.identity import IdentityGateway
from storefront.models import Profile
from storefront.pagination import PageParams, page_params, paginate
from storefront.schemas import AdminCreateUserRequest, ProfileRead, RoleUpdate
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("")
def list_users(admin: AdminUser, session: DbSession, params: PageParams = Depends(page_params)):
    statement = select(Profile).order_by(col(Profile.created_at).desc())
    return paginate(session, statement, params, ProfileRead)


@router.post("", status_code=201)
def create_user(
    body: AdminCreateUserRequest,
    admin: AdminUser,
    session: DbSession,
    identity: IdentityGateway = Depends(get_identity_gateway),
):
    """
    Create an account with a chosen role. If the profile can't be written
    the account is deleted again, so no half-created user is left.
    """
    email = body.email.lower()
    if session.exec(select(Profile.id).where(Profile.email == email)).first():
        raise DomainError("Email already in use")

    user = identity.sign_up(email, body.password, full_name=body.full_name)

    try:
        session.add(Profile(id=user.id, email=email, full_name=body.full_name, role=body.role))
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        identity.delete_user(user.id)
        logger.error("user.profile_failed", user_id=str(user.id), error=str(e))
        raise StoreError("Failed to create user profile", details=str(e)) from e

    logger.info("user.created", user_id=str(user.id), role=body.role.value, admin_id=str(admin.id))
    return {
        "message": "User registered successfully",
        "user": {"id": str(user.id), "email": user.email, "full_name": body.full_name, "role": body.role.value},
    }


@router.patch("/{user_id}/role")
def update_user_role(user_id: str, body: RoleUpdate, admin: AdminUser, session: DbSession):
    profile = session.get(Profile, parse_id(user_id, "User"))
    if not profile:
        raise NotFoundError("User not found")

    # Setting the current role again is a no-op write
    if profile.role != body.role:
        profile.role = body.role
        session.add(profile)
        session.commit()
        session.refresh(profile)
        logger.info("user.role_updated", user_id=str(profile.id), role=body.role.value, admin_id=str(admin.id))

    return {
        "message": "User role updated successfully",
        "user": ProfileRead.model_validate(profile).model_dump(mode="json"),
    }
