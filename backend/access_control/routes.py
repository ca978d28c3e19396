from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from .audit import list_audit_logs
from .authorization import authorize
from .database import get_db_session
from .middleware import client_meta, get_current_user, require_permissions
from .models import User
from .permissions import (
    PERMISSION_CATEGORIES,
    Permission,
    list_all_permissions,
    list_permissions_for_category,
)
from .roles import DEFAULT_ROLES, UserRole, effective_permissions, get_role_template
from .schemas import (
    AuditLogListOut,
    AuditLogOut,
    AuthorizeRequest,
    AuthorizeResponse,
    LoginRequest,
    LoginResponse,
    MeOut,
    MessageResponse,
    PermissionCatalogOut,
    RoleAssignRequest,
    RoleTemplateOut,
    StudentCreateRequest,
    StudentListOut,
    StudentOut,
    StudentUpdateRequest,
    UserCreateRequest,
    UserListOut,
    UserOut,
    UserUpdateRequest,
)
from .services import (
    assign_role,
    create_student,
    create_user,
    deactivate_user,
    delete_student,
    delete_user,
    get_student,
    get_user,
    list_students,
    list_users,
    login_user,
    update_student,
    update_user,
)

router = APIRouter(prefix="/api/v1", tags=["Access Control"])


def _sorted(permissions) -> list[Permission]:
    order = {p: index for index, p in enumerate(list_all_permissions())}
    return sorted(permissions, key=order.__getitem__)


def _template_out(role: UserRole) -> RoleTemplateOut:
    template = DEFAULT_ROLES[role]
    return RoleTemplateOut(
        key=role,
        name=template.name,
        description=template.description,
        permissions=_sorted(template.permissions),
    )


# --- Auth ---

@router.post("/auth/login", response_model=LoginResponse)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db_session)):
    token, user = login_user(db, login=payload.login, password=payload.password, **client_meta(request))
    return LoginResponse(access_token=token, role=user.role)


@router.get("/me", response_model=MeOut)
def me(current_user: User = Depends(get_current_user)):
    return MeOut(
        **UserOut.model_validate(current_user).model_dump(),
        permissions=_sorted(effective_permissions(current_user.role)),
    )


@router.post("/me/authorize", response_model=AuthorizeResponse)
def check_my_permissions(payload: AuthorizeRequest, current_user: User = Depends(get_current_user)):
    allowed = authorize(current_user.role, payload.permissions, payload.mode)
    return AuthorizeResponse(allowed=allowed, role=current_user.role)


# --- Permission catalogue & role templates ---

@router.get("/permissions", response_model=PermissionCatalogOut)
def permission_catalog(_: User = Depends(require_permissions(Permission.ROLE_VIEW))):
    permissions = list_all_permissions()
    return PermissionCatalogOut(
        permissions=permissions,
        categories={name: list(members) for name, members in PERMISSION_CATEGORIES.items()},
        total=len(permissions),
    )


@router.get("/permissions/categories/{category}", response_model=list[Permission])
def permissions_for_category(category: str, _: User = Depends(require_permissions(Permission.ROLE_VIEW))):
    return list_permissions_for_category(category)


@router.get("/roles", response_model=list[RoleTemplateOut])
def role_templates(_: User = Depends(require_permissions(Permission.ROLE_VIEW))):
    return [_template_out(role) for role in DEFAULT_ROLES]


@router.get("/roles/{role}", response_model=RoleTemplateOut)
def role_template(role: str, _: User = Depends(require_permissions(Permission.ROLE_VIEW))):
    if get_role_template(role) is None:
        raise HTTPException(status_code=404, detail="Role not found")
    return _template_out(UserRole(role))


# --- Users ---

@router.get("/users", response_model=UserListOut)
def users_index(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    role: UserRole | None = None,
    search: str | None = Query(default=None, max_length=100),
    db: Session = Depends(get_db_session),
    _: User = Depends(require_permissions(Permission.USER_VIEW)),
):
    users, total = list_users(db, page=page, limit=limit, role=role, search=search)
    return UserListOut(users=[UserOut.model_validate(u) for u in users], total=total, page=page, limit=limit)


@router.post("/users", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def users_create(
    payload: UserCreateRequest,
    request: Request,
    db: Session = Depends(get_db_session),
    current_user: User = Depends(require_permissions(Permission.USER_CREATE)),
):
    return create_user(
        db,
        username=payload.username,
        email=payload.email,
        raw_password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=payload.role,
        actor=current_user,
        **client_meta(request),
    )


@router.get("/users/{user_id}", response_model=UserOut)
def users_show(
    user_id: int,
    db: Session = Depends(get_db_session),
    _: User = Depends(require_permissions(Permission.USER_VIEW)),
):
    return get_user(db, user_id)


@router.patch("/users/{user_id}", response_model=UserOut)
def users_update(
    user_id: int,
    payload: UserUpdateRequest,
    request: Request,
    db: Session = Depends(get_db_session),
    current_user: User = Depends(require_permissions(Permission.USER_UPDATE)),
):
    return update_user(
        db,
        user_id=user_id,
        changes=payload.model_dump(exclude_unset=True),
        actor=current_user,
        **client_meta(request),
    )


@router.post("/users/{user_id}/deactivate", response_model=UserOut)
def users_deactivate(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db_session),
    current_user: User = Depends(require_permissions(Permission.USER_DEACTIVATE)),
):
    return deactivate_user(db, user_id=user_id, actor=current_user, **client_meta(request))


@router.delete("/users/{user_id}", response_model=MessageResponse)
def users_delete(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db_session),
    current_user: User = Depends(require_permissions(Permission.USER_DELETE)),
):
    delete_user(db, user_id=user_id, actor=current_user, **client_meta(request))
    return MessageResponse(message="User deleted successfully")


@router.put("/users/{user_id}/role", response_model=UserOut)
def users_assign_role(
    user_id: int,
    payload: RoleAssignRequest,
    request: Request,
    db: Session = Depends(get_db_session),
    current_user: User = Depends(require_permissions(Permission.ROLE_ASSIGN)),
):
    return assign_role(db, user_id=user_id, new_role=payload.role, actor=current_user, **client_meta(request))


# --- Students ---

@router.get("/students", response_model=StudentListOut)
def students_index(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    grade_level: str | None = None,
    db: Session = Depends(get_db_session),
    _: User = Depends(require_permissions(Permission.STUDENT_VIEW)),
):
    students, total = list_students(db, page=page, limit=limit, grade_level=grade_level)
    return StudentListOut(
        students=[StudentOut.model_validate(s) for s in students], total=total, page=page, limit=limit
    )


@router.post("/students", response_model=StudentOut, status_code=status.HTTP_201_CREATED)
def students_create(
    payload: StudentCreateRequest,
    request: Request,
    db: Session = Depends(get_db_session),
    current_user: User = Depends(require_permissions(Permission.STUDENT_CREATE)),
):
    return create_student(
        db,
        full_name=payload.full_name,
        email=payload.email,
        grade_level=payload.grade_level,
        guardian_email=payload.guardian_email,
        actor=current_user,
        **client_meta(request),
    )


@router.get("/students/{student_id}", response_model=StudentOut)
def students_show(
    student_id: int,
    db: Session = Depends(get_db_session),
    _: User = Depends(require_permissions(Permission.STUDENT_VIEW)),
):
    return get_student(db, student_id)


@router.patch("/students/{student_id}", response_model=StudentOut)
def students_update(
    student_id: int,
    payload: StudentUpdateRequest,
    request: Request,
    db: Session = Depends(get_db_session),
    current_user: User = Depends(require_permissions(Permission.STUDENT_UPDATE)),
):
    return update_student(
        db,
        student_id=student_id,
        changes=payload.model_dump(exclude_unset=True),
        actor=current_user,
        **client_meta(request),
    )


@router.delete("/students/{student_id}", response_model=MessageResponse)
def students_delete(
    student_id: int,
    request: Request,
    db: Session = Depends(get_db_session),
    current_user: User = Depends(require_permissions(Permission.STUDENT_DELETE)),
):
    delete_student(db, student_id=student_id, actor=current_user, **client_meta(request))
    return MessageResponse(message="Student deleted successfully")


# --- Audit ---

@router.get("/audit-logs", response_model=AuditLogListOut)
def audit_logs(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    action: str | None = None,
    resource_type: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    db: Session = Depends(get_db_session),
    _: User = Depends(require_permissions(Permission.SYSTEM_AUDIT)),
):
    logs, total = list_audit_logs(
        db,
        page=page,
        limit=limit,
        action=action,
        resource_type=resource_type,
        start=start,
        end=end,
    )
    return AuditLogListOut(
        logs=[AuditLogOut.model_validate(log) for log in logs],
        total=total,
        page=page,
        limit=limit,
    )
