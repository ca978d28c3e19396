"""
Student records gated by the student:* permissions.
"""
from access_control.models import AuditLog
from access_control.roles import UserRole


ADA = {"full_name": "Ada Lovelace", "email": "ada@school.local", "grade_level": "5", "guardian_email": "byron@home.org"}


def test_admin_student_crud(client, auth_headers):
    headers = auth_headers(UserRole.ADMIN)

    r = client.post("/api/v1/students", json=ADA, headers=headers)
    assert r.status_code == 201
    student_id = r.json()["id"]

    r = client.get(f"/api/v1/students/{student_id}", headers=headers)
    assert r.json()["guardian_email"] == "byron@home.org"

    r = client.patch(f"/api/v1/students/{student_id}", json={"grade_level": "6"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["grade_level"] == "6"

    r = client.delete(f"/api/v1/students/{student_id}", headers=headers)
    assert r.status_code == 200
    assert client.get(f"/api/v1/students/{student_id}", headers=headers).status_code == 404


def test_list_filters_by_grade(client, auth_headers):
    headers = auth_headers(UserRole.ADMIN)
    client.post("/api/v1/students", json=ADA, headers=headers)
    client.post(
        "/api/v1/students",
        json={"full_name": "Alan Turing", "email": "alan@school.local", "grade_level": "7"},
        headers=headers,
    )

    r = client.get("/api/v1/students", headers=headers)
    assert r.json()["total"] == 2
    assert [s["full_name"] for s in r.json()["students"]] == ["Ada Lovelace", "Alan Turing"]

    r = client.get("/api/v1/students", params={"grade_level": "7"}, headers=headers)
    assert [s["email"] for s in r.json()["students"]] == ["alan@school.local"]


def test_duplicate_student_email_conflicts(client, auth_headers):
    headers = auth_headers(UserRole.ADMIN)
    client.post("/api/v1/students", json=ADA, headers=headers)
    r = client.post("/api/v1/students", json={**ADA, "email": "ADA@school.local"}, headers=headers)
    assert r.status_code == 409


def test_read_only_roles_can_view_but_not_modify(client, auth_headers):
    student_id = client.post("/api/v1/students", json=ADA, headers=auth_headers(UserRole.ADMIN)).json()["id"]

    for role in (UserRole.TEACHER, UserRole.STUDENT, UserRole.PARENT):
        headers = auth_headers(role)
        assert client.get(f"/api/v1/students/{student_id}", headers=headers).status_code == 200
        assert client.patch(
            f"/api/v1/students/{student_id}", json={"grade_level": "9"}, headers=headers
        ).status_code == 403
        assert client.delete(f"/api/v1/students/{student_id}", headers=headers).status_code == 403


def test_forbidden_request_does_not_touch_storage(client, auth_headers):
    r = client.post("/api/v1/students", json=ADA, headers=auth_headers(UserRole.TEACHER))
    assert r.status_code == 403
    r = client.get("/api/v1/students", headers=auth_headers(UserRole.ADMIN))
    assert r.json()["total"] == 0


def test_unchanged_update_writes_no_audit_entry(client, auth_headers, session_factory):
    headers = auth_headers(UserRole.ADMIN)
    student_id = client.post("/api/v1/students", json=ADA, headers=headers).json()["id"]

    for changes in ({}, {"grade_level": "5"}):
        r = client.patch(f"/api/v1/students/{student_id}", json=changes, headers=headers)
        assert r.status_code == 200
        assert r.json()["grade_level"] == "5"

    db = session_factory()
    try:
        assert db.query(AuditLog).filter(AuditLog.action == "update_student").count() == 0
    finally:
        db.close()
