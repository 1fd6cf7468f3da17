from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.api.deps import require_roles
from clinic.api.v1.auth.schemas import ProfileUpdate, UserEnvelope, UserPublic
from clinic.domain.auth.models import User, UserRole
from clinic.domain.auth.service import AuthenticationService
from clinic.infrastructure.database import get_db

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.put("/users/{user_id}/profile", response_model=UserEnvelope)
async def update_user_profile(
    user_id: str,
    profile_in: ProfileUpdate,
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db)
):
    """Edit any user's contact and role profile fields"""
    auth_service = AuthenticationService(db)
    user = await auth_service.admin_update_profile(
        current_user, user_id, profile_in.model_dump(exclude_unset=True, exclude_none=True)
    )
    return {"message": "Profile updated", "user": UserPublic.model_validate(user)}
