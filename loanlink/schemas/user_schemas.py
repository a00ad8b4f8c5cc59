from pydantic import BaseModel, ConfigDict, Field
from enum import Enum
from typing import Optional

from loanlink.schemas.loan_schema import EMAIL_PATTERN


class UserRoleEnum(str, Enum):
    borrower = "borrower"
    customer = "customer"
    manager = "manager"
    admin = "admin"


# Roles an administrator may assign through the role update endpoint
class AssignableRoleEnum(str, Enum):
    borrower = "borrower"
    manager = "manager"
    admin = "admin"


class UserUpsert(BaseModel):
    """Profile sent by the client on every login. Extra profile fields are stored on first sight."""

    model_config = ConfigDict(extra="allow", str_strip_whitespace=True)

    email: str = Field(..., min_length=1, pattern=EMAIL_PATTERN, description="Email address of the user, stored exactly as sent")
    role: Optional[UserRoleEnum] = Field(None, description="Role to assign when the user is first created")


class RoleUpdate(BaseModel):
    role: AssignableRoleEnum = Field(..., description="New role for the user")
