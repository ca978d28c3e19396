"""
Authorization predicates and the authorize() entry point.
"""
import itertools

import pytest

from access_control.authorization import (
    AuthMode,
    authorize,
    has_all_permissions,
    has_any_permission,
    has_permission,
)
from access_control.permissions import Permission, list_all_permissions
from access_control.roles import DEFAULT_ROLES, UserRole
from test_roles import PARENT_TOKENS, STUDENT_TOKENS, TEACHER_TOKENS


ALL = list_all_permissions()
SUPER_ADMIN = DEFAULT_ROLES[UserRole.SUPER_ADMIN].permissions
TEACHER = DEFAULT_ROLES[UserRole.TEACHER].permissions
STUDENT = DEFAULT_ROLES[UserRole.STUDENT].permissions
PARENT = DEFAULT_ROLES[UserRole.PARENT].permissions


@pytest.mark.parametrize("permission", ALL, ids=lambda p: p.value)
def test_super_admin_holds_every_permission(permission):
    assert has_permission(SUPER_ADMIN, permission)


@pytest.mark.parametrize(
    "role, literal",
    [
        (UserRole.TEACHER, TEACHER_TOKENS),
        (UserRole.STUDENT, STUDENT_TOKENS),
        (UserRole.PARENT, PARENT_TOKENS),
    ],
)
def test_membership_matches_literal_template_data(role, literal):
    granted = DEFAULT_ROLES[role].permissions
    for permission in ALL:
        assert has_permission(granted, permission) == (permission.value in literal)


@pytest.mark.parametrize("granted", [frozenset(), TEACHER, SUPER_ADMIN])
def test_any_of_nothing_is_false(granted):
    assert has_any_permission(granted, []) is False


@pytest.mark.parametrize("granted", [frozenset(), TEACHER, SUPER_ADMIN])
def test_all_of_nothing_is_true(granted):
    assert has_all_permissions(granted, []) is True


def test_all_implies_any_for_non_empty_requirements():
    for granted in (TEACHER, STUDENT, PARENT):
        for required in itertools.combinations(ALL[:12], 2):
            if has_all_permissions(granted, required):
                assert has_any_permission(granted, required)


def test_predicates_are_idempotent():
    required = [Permission.GRADING_VIEW, Permission.SYSTEM_SETTINGS]
    for predicate in (has_any_permission, has_all_permissions):
        assert predicate(PARENT, required) == predicate(PARENT, required)
    assert has_permission(PARENT, Permission.GRADING_VIEW) == has_permission(PARENT, Permission.GRADING_VIEW)


def test_teacher_cannot_view_finances():
    assert has_permission(TEACHER, "financial:view") is False


def test_parent_has_any_of_grading_or_settings():
    assert has_any_permission(PARENT, ["grading:view", "system:settings"]) is True


def test_student_has_all_of_view_and_profile():
    assert has_all_permissions(STUDENT, ["student:view", "student:profile"]) is True


def test_string_tokens_and_enum_members_are_interchangeable():
    granted = ["student:view", "exam:view"]
    assert has_permission(granted, Permission.STUDENT_VIEW)
    assert has_all_permissions(granted, [Permission.EXAM_VIEW, "student:view"])
    assert has_permission(TEACHER, "student:view")


def test_unknown_tokens_are_not_granted():
    assert has_permission(SUPER_ADMIN, "student:teleport") is False
    assert has_any_permission(SUPER_ADMIN, ["student:teleport"]) is False
    assert has_all_permissions(SUPER_ADMIN, ["student:view", "student:teleport"]) is False


def test_required_may_be_a_generator():
    assert has_any_permission(STUDENT, (p for p in [Permission.HR_VIEW, Permission.EXAM_VIEW]))


def test_authorize_single_permission():
    assert authorize(UserRole.ADMIN, Permission.STUDENT_CREATE) is True
    assert authorize("student", "student:create") is False


def test_authorize_modes():
    required = [Permission.GRADING_VIEW, Permission.FINANCIAL_VIEW]
    assert authorize(UserRole.PARENT, required, AuthMode.ALL) is True
    assert authorize(UserRole.TEACHER, required, AuthMode.ALL) is False
    assert authorize(UserRole.TEACHER, required, AuthMode.ANY) is True
    assert authorize(UserRole.TEACHER, required) is True
    assert authorize(UserRole.TEACHER, required, "all") is False


def test_authorize_empty_requirement_list():
    assert authorize(UserRole.SUPER_ADMIN, [], AuthMode.ANY) is False
    assert authorize(UserRole.STUDENT, [], AuthMode.ALL) is True


def test_authorize_unknown_role_is_denied():
    assert authorize("janitor", Permission.LIBRARY_VIEW) is False
    assert authorize(None, [Permission.LIBRARY_VIEW], AuthMode.ANY) is False
    assert authorize("janitor", [], AuthMode.ALL) is True
