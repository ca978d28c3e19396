from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .authorization import AuthMode
from .permissions import Permission
from .roles import UserRole


class LoginRequest(BaseModel):
    login: str = Field(min_length=3, max_length=255, description="Username or email")
    password: str = Field(min_length=8)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: UserRole


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    first_name: str
    last_name: str
    role: UserRole
    is_active: bool
    last_login: datetime | None = None
    created_at: datetime


class MeOut(UserOut):
    permissions: list[Permission]


class UserListOut(BaseModel):
    users: list[UserOut]
    total: int
    page: int
    limit: int


class UserCreateRequest(BaseModel):
    username: str = Field(min_length=3, max_length=100)
    email: str = Field(min_length=5, max_length=255)
    password: str = Field(min_length=8)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    role: UserRole = UserRole.STUDENT


class UserUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: str | None = Field(default=None, min_length=5, max_length=255)
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    password: str | None = Field(default=None, min_length=8)


class RoleAssignRequest(BaseModel):
    role: UserRole


class AuthorizeRequest(BaseModel):
    permissions: list[str]
    mode: AuthMode = AuthMode.ANY


class AuthorizeResponse(BaseModel):
    allowed: bool
    role: UserRole


class PermissionCatalogOut(BaseModel):
    permissions: list[Permission]
    categories: dict[str, list[Permission]]
    total: int


class RoleTemplateOut(BaseModel):
    key: UserRole
    name: str
    description: str
    permissions: list[Permission]


class StudentCreateRequest(BaseModel):
    full_name: str = Field(min_length=2, max_length=255)
    email: str = Field(min_length=5, max_length=255)
    grade_level: str | None = Field(default=None, max_length=20)
    guardian_email: str | None = Field(default=None, min_length=5, max_length=255)


class StudentUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    full_name: str | None = Field(default=None, min_length=2, max_length=255)
    email: str | None = Field(default=None, min_length=5, max_length=255)
    grade_level: str | None = Field(default=None, max_length=20)
    guardian_email: str | None = Field(default=None, min_length=5, max_length=255)


class StudentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    email: str
    grade_level: str | None = None
    guardian_email: str | None = None
    created_at: datetime


class StudentListOut(BaseModel):
    students: list[StudentOut]
    total: int
    page: int
    limit: int


class AuditLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int | None
    action: str
    resource_type: str
    resource_id: str | None
    old_values: str | None
    new_values: str | None
    ip_address: str | None
    created_at: datetime


class AuditLogListOut(BaseModel):
    logs: list[AuditLogOut]
    total: int
    page: int
    limit: int


class MessageResponse(BaseModel):
    message: str
