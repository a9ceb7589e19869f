"""Request and response bodies that exist only at the HTTP boundary."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.models.ledger import GlobalRole, LedgerId, PermissionGrant, User


class PermissionsPayload(BaseModel):
    permissions: list[PermissionGrant]


class ImportPayload(BaseModel):
    """Rows as produced by a client-side CSV parser."""
    model_config = ConfigDict(populate_by_name=True)

    ledger_id: LedgerId = Field(..., alias="ledgerId")
    transactions: list[Any]


class UserInvite(BaseModel):
    email: str
    role: Optional[GlobalRole] = None


class UserPatch(BaseModel):
    name: Optional[str] = None
    role: Optional[GlobalRole] = None


class MessageCreate(BaseModel):
    content: str


class UserOut(BaseModel):
    """A user without credentials or invite secrets."""

    id: str
    name: str
    email: str
    role: GlobalRole
    pending: bool
    created_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserOut":
        return cls(
            id=str(user.id),
            name=user.name,
            email=user.email,
            role=user.role,
            pending=user.pending,
            created_at=user.created_at.isoformat(),
        )
