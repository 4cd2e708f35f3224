"""Authentication endpoints."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dms.api.schemas import AuthResponse, LoginRequest, data_envelope
from dms.auth.identity import verify_identity_token
from dms.auth.jwt import create_access_token
from dms.database.database import get_db
from dms.database.user_repository import UserRepository
from dms.engine.permissions import default_permissions_for_role
from dms.errors import AuthenticationFailed, PermissionDenied
from dms.models.user import User, UserRole

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login")
def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Exchange an identity-provider ID token for a DMS access token.

    A user pre-provisioned by an administrator is matched by email. Anyone else
    is created as a guest with no module permissions.
    """
    user_info = verify_identity_token(request.id_token)
    if not user_info:
        raise AuthenticationFailed("Invalid or expired token", code="INVALID_TOKEN")
    if not user_info.get("email"):
        raise AuthenticationFailed("Identity token carries no email", code="INVALID_TOKEN")

    repo = UserRepository(db)
    user = repo.get(user_info["id"]) or repo.get_by_email(user_info["email"])
    if user is None:
        now = datetime.utcnow()
        user = repo.create(
            User(
                id=user_info["id"],
                email=user_info["email"].strip().lower(),
                display_name=user_info.get("name") or user_info["email"].split("@")[0],
                role=UserRole.GUEST,
                module_permissions=default_permissions_for_role(UserRole.GUEST),
                created_at=now,
                updated_at=now,
            )
        )
        logger.info(f"Created guest user {user.id} on first sign-in")

    if not user.is_active:
        raise PermissionDenied("Account is disabled", code="ACCOUNT_DISABLED")

    token = create_access_token(user.id, role=user.role)
    response = AuthResponse(
        access_token=token,
        user=user.model_dump(mode="json", by_alias=True),
    )
    return data_envelope(response)
