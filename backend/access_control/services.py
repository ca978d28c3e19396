from datetime import datetime, timezone
import logging
import re

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from .audit import HIDDEN, log_audit_event
from .authorization import has_permission
from .config import settings
from .models import Student, User
from .permissions import Permission
from .roles import UserRole, effective_permissions
from .security import create_access_token, hash_password, verify_password


logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")


def _normalize_email(value: str) -> str:
    normalized = value.lower().strip()
    if not EMAIL_PATTERN.match(normalized):
        raise HTTPException(status_code=400, detail="Invalid email format")
    return normalized


def _user_snapshot(user: User) -> dict:
    return {
        "username": user.username,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "role": user.role.value,
        "is_active": user.is_active,
    }


def _student_snapshot(student: Student) -> dict:
    return {
        "full_name": student.full_name,
        "email": student.email,
        "grade_level": student.grade_level,
        "guardian_email": student.guardian_email,
    }


# --- Authentication ---

def login_user(
    db: Session,
    *,
    login: str,
    password: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> tuple[str, User]:
    identifier = login.strip().lower()
    user = (
        db.query(User)
        .filter(or_(User.username == login.strip(), User.email == identifier))
        .first()
    )
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    user.last_login = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    log_audit_event(
        db,
        user_id=user.id,
        action="login",
        resource_type="user_session",
        resource_id=user.id,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return create_access_token(user_id=user.id, role=user.role.value), user


# --- Users ---

def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def list_users(
    db: Session,
    *,
    page: int = 1,
    limit: int = 20,
    role: UserRole | None = None,
    search: str | None = None,
) -> tuple[list[User], int]:
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                User.username.ilike(pattern),
                User.email.ilike(pattern),
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
            )
        )
    total = query.count()
    users = query.order_by(User.created_at.desc(), User.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return users, total


def _ensure_can_grant(actor: User, role: UserRole) -> None:
    """Creating a user must not hand out authority the actor lacks, unless the actor may assign roles."""
    held = effective_permissions(actor.role)
    if has_permission(held, Permission.ROLE_ASSIGN):
        return
    if not effective_permissions(role) <= held:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Creating a {role.value} account requires {Permission.ROLE_ASSIGN.value}",
        )


def _ensure_can_manage(actor: User, target: User) -> None:
    """Changing another account must not reach above the actor's own authority, unless the actor may assign roles."""
    held = effective_permissions(actor.role)
    if has_permission(held, Permission.ROLE_ASSIGN):
        return
    if not effective_permissions(target.role) <= held:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Managing a {target.role.value} account requires {Permission.ROLE_ASSIGN.value}",
        )


def _ensure_not_last_super_admin(db: Session, user: User) -> None:
    if user.role != UserRole.SUPER_ADMIN or not user.is_active:
        return
    remaining = (
        db.query(User)
        .filter(User.role == UserRole.SUPER_ADMIN, User.is_active.is_(True), User.id != user.id)
        .count()
    )
    if remaining == 0:
        raise HTTPException(status_code=409, detail="Cannot remove the last active super admin")


def create_user(
    db: Session,
    *,
    username: str,
    email: str,
    raw_password: str,
    first_name: str,
    last_name: str,
    role: UserRole,
    actor: User,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> User:
    _ensure_can_grant(actor, role)
    email = _normalize_email(email)
    username = username.strip()
    if db.query(User).filter(User.username == username).first():
        raise HTTPException(status_code=409, detail="Username already exists")
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=409, detail="User email already exists")

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(raw_password),
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        role=role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    log_audit_event(
        db,
        user_id=actor.id,
        action="create_user",
        resource_type="user",
        resource_id=user.id,
        new_values={**_user_snapshot(user), "password": HIDDEN},
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return user


def update_user(
    db: Session,
    *,
    user_id: int,
    changes: dict,
    actor: User,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> User:
    user = get_user(db, user_id)
    _ensure_can_manage(actor, user)
    old_values = _user_snapshot(user)
    new_values = {}

    if changes.get("email") is not None:
        normalized = _normalize_email(changes["email"])
        exists = db.query(User).filter(User.email == normalized, User.id != user_id).first()
        if exists:
            raise HTTPException(status_code=409, detail="Email already in use")
        user.email = normalized
        new_values["email"] = normalized
    for field in ("first_name", "last_name"):
        if changes.get(field) is not None:
            value = changes[field].strip()
            setattr(user, field, value)
            new_values[field] = value
    if changes.get("password") is not None:
        user.password_hash = hash_password(changes["password"])
        new_values["password"] = HIDDEN

    if not new_values:
        return user

    db.commit()
    db.refresh(user)
    log_audit_event(
        db,
        user_id=actor.id,
        action="update_user",
        resource_type="user",
        resource_id=user.id,
        old_values=old_values,
        new_values=new_values,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return user


def deactivate_user(
    db: Session,
    *,
    user_id: int,
    actor: User,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> User:
    user = get_user(db, user_id)
    _ensure_can_manage(actor, user)
    if not user.is_active:
        return user
    _ensure_not_last_super_admin(db, user)

    user.is_active = False
    db.commit()
    db.refresh(user)
    log_audit_event(
        db,
        user_id=actor.id,
        action="deactivate_user",
        resource_type="user",
        resource_id=user.id,
        old_values={"is_active": True},
        new_values={"is_active": False},
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return user


def delete_user(
    db: Session,
    *,
    user_id: int,
    actor: User,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> None:
    user = get_user(db, user_id)
    _ensure_can_manage(actor, user)
    _ensure_not_last_super_admin(db, user)
    old_values = _user_snapshot(user)

    db.delete(user)
    db.commit()
    log_audit_event(
        db,
        user_id=actor.id,
        action="delete_user",
        resource_type="user",
        resource_id=user_id,
        old_values={**old_values, "password": HIDDEN},
        ip_address=ip_address,
        user_agent=user_agent,
    )


def assign_role(
    db: Session,
    *,
    user_id: int,
    new_role: UserRole,
    actor: User,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> User:
    """Move ``user_id`` to ``new_role``; the only path that changes a user's authority."""
    user = get_user(db, user_id)
    if user.role == new_role:
        return user
    if new_role != UserRole.SUPER_ADMIN:
        _ensure_not_last_super_admin(db, user)

    old_role = user.role
    user.role = new_role
    db.commit()
    db.refresh(user)
    logger.info(f"User {user.id} role changed {old_role.value} -> {new_role.value} by user {actor.id}")

    log_audit_event(
        db,
        user_id=actor.id,
        action="assign_role",
        resource_type="user",
        resource_id=user.id,
        old_values={"role": old_role.value},
        new_values={"role": new_role.value},
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return user


# --- Students ---

def get_student(db: Session, student_id: int) -> Student:
    student = db.query(Student).filter(Student.id == student_id).first()
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    return student


def list_students(
    db: Session,
    *,
    page: int = 1,
    limit: int = 20,
    grade_level: str | None = None,
) -> tuple[list[Student], int]:
    query = db.query(Student)
    if grade_level:
        query = query.filter(Student.grade_level == grade_level)
    total = query.count()
    students = query.order_by(Student.full_name, Student.id).offset((page - 1) * limit).limit(limit).all()
    return students, total


def create_student(
    db: Session,
    *,
    full_name: str,
    email: str,
    grade_level: str | None,
    guardian_email: str | None,
    actor: User,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> Student:
    email = _normalize_email(email)
    if db.query(Student).filter(Student.email == email).first():
        raise HTTPException(status_code=409, detail="Student email already exists")

    student = Student(
        full_name=full_name.strip(),
        email=email,
        grade_level=grade_level.strip() if grade_level else None,
        guardian_email=_normalize_email(guardian_email) if guardian_email else None,
        created_by_user_id=actor.id,
    )
    db.add(student)
    db.commit()
    db.refresh(student)

    log_audit_event(
        db,
        user_id=actor.id,
        action="create_student",
        resource_type="student",
        resource_id=student.id,
        new_values=_student_snapshot(student),
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return student


def update_student(
    db: Session,
    *,
    student_id: int,
    changes: dict,
    actor: User,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> Student:
    student = get_student(db, student_id)
    old_values = _student_snapshot(student)

    if changes.get("email") is not None:
        normalized = _normalize_email(changes["email"])
        exists = db.query(Student).filter(Student.email == normalized, Student.id != student_id).first()
        if exists:
            raise HTTPException(status_code=409, detail="Email already in use")
        student.email = normalized
    if changes.get("full_name") is not None:
        student.full_name = changes["full_name"].strip()
    if changes.get("grade_level") is not None:
        student.grade_level = changes["grade_level"].strip()
    if changes.get("guardian_email") is not None:
        student.guardian_email = _normalize_email(changes["guardian_email"])

    new_values = _student_snapshot(student)
    if new_values == old_values:
        return student

    db.commit()
    db.refresh(student)
    log_audit_event(
        db,
        user_id=actor.id,
        action="update_student",
        resource_type="student",
        resource_id=student.id,
        old_values=old_values,
        new_values=new_values,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return student


def delete_student(
    db: Session,
    *,
    student_id: int,
    actor: User,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> None:
    student = get_student(db, student_id)
    old_values = _student_snapshot(student)
    db.delete(student)
    db.commit()
    log_audit_event(
        db,
        user_id=actor.id,
        action="delete_student",
        resource_type="student",
        resource_id=student_id,
        old_values=old_values,
        ip_address=ip_address,
        user_agent=user_agent,
    )


# --- Seeding ---

def seed_default_users(db: Session) -> None:
    defaults = [
        ("superadmin", "superadmin@school.local", "Super", "Admin", UserRole.SUPER_ADMIN),
        ("admin", "admin@school.local", "School", "Admin", UserRole.ADMIN),
        ("teacher", "teacher@school.local", "Demo", "Teacher", UserRole.TEACHER),
        ("student", "student@school.local", "Demo", "Student", UserRole.STUDENT),
        ("parent", "parent@school.local", "Demo", "Parent", UserRole.PARENT),
    ]

    for username, email, first_name, last_name, role in defaults:
        exists = db.query(User).filter(or_(User.username == username, User.email == email)).first()
        if exists:
            continue
        db.add(
            User(
                username=username,
                email=email,
                first_name=first_name,
                last_name=last_name,
                role=role,
                password_hash=hash_password(settings.seed_password),
                is_active=True,
            )
        )
        logger.info(f"Seeded default {role.value} account {email}")
    db.commit()
