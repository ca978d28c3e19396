from debug_rbac import report


def test_report_lists_templates_and_users(session_factory):
    db = session_factory()
    try:
        lines = report(db)
    finally:
        db.close()

    assert lines[0] == "--- ROLE TEMPLATES ---"
    assert any(line.startswith("super_admin") and "74 permissions" in line for line in lines)
    assert sum(1 for line in lines if "active " in line) == 5


def test_report_for_one_user_breaks_down_categories(session_factory):
    db = session_factory()
    try:
        lines = report(db, "parent")
    finally:
        db.close()

    assert any("Financial Management: financial:view" in line for line in lines)
    assert not any("Role Management" in line for line in lines)


def test_report_for_unknown_user(session_factory):
    db = session_factory()
    try:
        assert report(db, "nobody")[-1] == "No matching users."
    finally:
        db.close()
