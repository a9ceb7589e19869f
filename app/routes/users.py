"""User administration routes (platform admins only)."""

from uuid import UUID

from fastapi import APIRouter, Depends

from app.auth import get_request_context
from app.dependencies import get_user_directory
from app.schemas import UserInvite, UserOut, UserPatch
from src.admin import UserDirectory
from src.models.ledger import RequestContext

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=list[UserOut])
async def list_users(
    ctx: RequestContext = Depends(get_request_context),
    directory: UserDirectory = Depends(get_user_directory),
):
    return [UserOut.from_user(user) for user in await directory.list_users(ctx)]


@router.post("/invite")
async def invite_user(
    payload: UserInvite,
    ctx: RequestContext = Depends(get_request_context),
    directory: UserDirectory = Depends(get_user_directory),
):
    """Create a pending user. Delivering the invite token is up to the caller."""
    user = await directory.invite_user(ctx, payload.email, payload.role)
    return {
        "message": "Invitation created successfully",
        "user": UserOut.from_user(user).model_dump(mode="json"),
        "inviteToken": user.invite_token,
    }


@router.put("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: UUID,
    payload: UserPatch,
    ctx: RequestContext = Depends(get_request_context),
    directory: UserDirectory = Depends(get_user_directory),
):
    user = await directory.update_user(ctx, user_id, name=payload.name, role=payload.role)
    return UserOut.from_user(user)


@router.delete("/{user_id}")
async def delete_user(
    user_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    directory: UserDirectory = Depends(get_user_directory),
):
    await directory.delete_user(ctx, user_id)
    return {"message": "User deleted successfully"}
