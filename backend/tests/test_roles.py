"""
Role templates: literal membership and derived Super Admin set.
"""
import dataclasses

import pytest

from access_control.permissions import Permission, list_all_permissions, list_permissions_for_category
from access_control.roles import (
    DEFAULT_ROLES,
    RoleTemplate,
    UserRole,
    effective_permissions,
    get_role_template,
)


TEACHER_TOKENS = {
    "student:view", "student:profile", "teacher:view", "teacher:profile", "teacher:assignments",
    "academic:view", "academic:classes", "academic:assignments", "academic:timetable",
    "attendance:view", "attendance:mark", "attendance:reports",
    "grading:view", "grading:create", "grading:update", "grading:reports",
    "library:view", "library:issue", "library:return",
    "communication:view", "exam:view", "exam:results", "reports:view",
}

STUDENT_TOKENS = {
    "student:view", "student:profile", "academic:view", "academic:timetable", "attendance:view",
    "grading:view", "library:view", "communication:view", "exam:view", "exam:results", "reports:view",
}

PARENT_TOKENS = {
    "student:view", "academic:view", "academic:timetable", "attendance:view", "grading:view",
    "financial:view", "library:view", "communication:view", "exam:view", "exam:results", "reports:view",
}


def _values(template: RoleTemplate) -> set[str]:
    return {p.value for p in template.permissions}


def test_five_default_roles():
    assert set(DEFAULT_ROLES) == set(UserRole)
    assert [t.name for t in DEFAULT_ROLES.values()] == [
        "Super Administrator",
        "Administrator",
        "Teacher",
        "Student",
        "Parent",
    ]


def test_super_admin_is_the_full_registry():
    assert DEFAULT_ROLES[UserRole.SUPER_ADMIN].permissions == frozenset(list_all_permissions())


def test_admin_excludes_system_and_role_management():
    admin = DEFAULT_ROLES[UserRole.ADMIN].permissions
    excluded = set(list_permissions_for_category("System Administration")) | set(
        list_permissions_for_category("Role Management")
    )
    assert admin.isdisjoint(excluded)
    assert admin == frozenset(list_all_permissions()) - excluded


@pytest.mark.parametrize(
    "role, expected",
    [
        (UserRole.TEACHER, TEACHER_TOKENS),
        (UserRole.STUDENT, STUDENT_TOKENS),
        (UserRole.PARENT, PARENT_TOKENS),
    ],
)
def test_curated_templates_match_literal_lists(role, expected):
    assert _values(DEFAULT_ROLES[role]) == expected


def test_templates_are_not_strictly_nested():
    admin = DEFAULT_ROLES[UserRole.ADMIN].permissions
    teacher = DEFAULT_ROLES[UserRole.TEACHER].permissions
    parent = DEFAULT_ROLES[UserRole.PARENT].permissions
    assert teacher <= admin
    assert Permission.FINANCIAL_VIEW in parent
    assert Permission.FINANCIAL_VIEW not in teacher


def test_templates_are_frozen():
    template = DEFAULT_ROLES[UserRole.TEACHER]
    with pytest.raises(dataclasses.FrozenInstanceError):
        template.permissions = frozenset()  # type: ignore[misc]


def test_get_role_template_accepts_enum_or_value():
    assert get_role_template(UserRole.PARENT) is DEFAULT_ROLES[UserRole.PARENT]
    assert get_role_template("parent") is DEFAULT_ROLES[UserRole.PARENT]
    assert get_role_template("janitor") is None


def test_effective_permissions_follow_the_role():
    assert effective_permissions("student") == DEFAULT_ROLES[UserRole.STUDENT].permissions
    assert effective_permissions("janitor") == frozenset()
    assert effective_permissions(None) == frozenset()
