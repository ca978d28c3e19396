"""
Predefined role templates.

A user's authority is exactly the permission set of the template matching
their ``UserRole``; there are no per-user grants.
"""
import enum
from dataclasses import dataclass
from types import MappingProxyType

from .permissions import PERMISSION_CATEGORIES, Permission, list_all_permissions


class UserRole(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"


@dataclass(frozen=True)
class RoleTemplate:
    name: str
    description: str
    permissions: frozenset[Permission]


def _categories(*names: str) -> frozenset[Permission]:
    return frozenset(p for name in names for p in PERMISSION_CATEGORIES[name])


SUPER_ADMIN = RoleTemplate(
    name="Super Administrator",
    description="Full system access with all permissions",
    permissions=frozenset(list_all_permissions()),
)

ADMIN = RoleTemplate(
    name="Administrator",
    description="School administration with most permissions except system management",
    permissions=_categories(
        "User Management",
        "Student Management",
        "Teacher Management",
        "Academic Management",
        "Attendance",
        "Grading",
        "Financial Management",
        "Library",
        "Communication",
        "HR Management",
        "Other Systems",
    ),
)

TEACHER = RoleTemplate(
    name="Teacher",
    description="Teaching staff with student and academic management",
    permissions=frozenset({
        Permission.STUDENT_VIEW,
        Permission.STUDENT_PROFILE,
        Permission.TEACHER_VIEW,
        Permission.TEACHER_PROFILE,
        Permission.TEACHER_ASSIGNMENTS,
        Permission.ACADEMIC_VIEW,
        Permission.ACADEMIC_CLASSES,
        Permission.ACADEMIC_ASSIGNMENTS,
        Permission.ACADEMIC_TIMETABLE,
        Permission.ATTENDANCE_VIEW,
        Permission.ATTENDANCE_MARK,
        Permission.ATTENDANCE_REPORTS,
        Permission.GRADING_VIEW,
        Permission.GRADING_CREATE,
        Permission.GRADING_UPDATE,
        Permission.GRADING_REPORTS,
        Permission.LIBRARY_VIEW,
        Permission.LIBRARY_ISSUE,
        Permission.LIBRARY_RETURN,
        Permission.COMMUNICATION_VIEW,
        Permission.EXAM_VIEW,
        Permission.EXAM_RESULTS,
        Permission.REPORTS_VIEW,
    }),
)

STUDENT = RoleTemplate(
    name="Student",
    description="Student access with limited permissions",
    permissions=frozenset({
        Permission.STUDENT_VIEW,
        Permission.STUDENT_PROFILE,
        Permission.ACADEMIC_VIEW,
        Permission.ACADEMIC_TIMETABLE,
        Permission.ATTENDANCE_VIEW,
        Permission.GRADING_VIEW,
        Permission.LIBRARY_VIEW,
        Permission.COMMUNICATION_VIEW,
        Permission.EXAM_VIEW,
        Permission.EXAM_RESULTS,
        Permission.REPORTS_VIEW,
    }),
)

PARENT = RoleTemplate(
    name="Parent",
    description="Parent access to view child information",
    permissions=frozenset({
        Permission.STUDENT_VIEW,
        Permission.ACADEMIC_VIEW,
        Permission.ACADEMIC_TIMETABLE,
        Permission.ATTENDANCE_VIEW,
        Permission.GRADING_VIEW,
        Permission.FINANCIAL_VIEW,
        Permission.LIBRARY_VIEW,
        Permission.COMMUNICATION_VIEW,
        Permission.EXAM_VIEW,
        Permission.EXAM_RESULTS,
        Permission.REPORTS_VIEW,
    }),
)

DEFAULT_ROLES = MappingProxyType({
    UserRole.SUPER_ADMIN: SUPER_ADMIN,
    UserRole.ADMIN: ADMIN,
    UserRole.TEACHER: TEACHER,
    UserRole.STUDENT: STUDENT,
    UserRole.PARENT: PARENT,
})


def get_role_template(role: UserRole | str) -> RoleTemplate | None:
    try:
        return DEFAULT_ROLES[UserRole(role)]
    except ValueError:
        return None


def effective_permissions(role: UserRole | str | None) -> frozenset[Permission]:
    """Permissions held by a caller with ``role``; empty for unknown roles."""
    if role is None:
        return frozenset()
    template = get_role_template(role)
    return template.permissions if template else frozenset()
