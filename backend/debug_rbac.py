"""
Print role templates and each account's effective permissions.

Usage: python debug_rbac.py [username]
"""
import sys

from sqlalchemy.orm import Session

from access_control.database import engine
from access_control.models import User
from access_control.permissions import PERMISSION_CATEGORIES
from access_control.roles import DEFAULT_ROLES, effective_permissions


def report(db: Session, username: str | None = None) -> list[str]:
    lines = ["--- ROLE TEMPLATES ---"]
    for role, template in DEFAULT_ROLES.items():
        lines.append(f"{role.value:<12} {template.name:<20} {len(template.permissions):>3} permissions")

    lines.append("")
    lines.append("--- USERS ---")
    query = db.query(User).order_by(User.id)
    if username:
        query = query.filter(User.username == username)
    users = query.all()
    if not users:
        lines.append("No matching users.")

    for user in users:
        status = "active" if user.is_active else "inactive"
        granted = effective_permissions(user.role)
        lines.append(f"{user.id:>4} {user.username:<16} {user.role.value:<12} {status:<8} {len(granted)} permissions")
        if username:
            for category, members in PERMISSION_CATEGORIES.items():
                held = [p.value for p in members if p in granted]
                if held:
                    lines.append(f"      {category}: {', '.join(held)}")
    return lines


if __name__ == "__main__":
    db = Session(bind=engine)
    try:
        print("\n".join(report(db, sys.argv[1] if len(sys.argv) > 1 else None)))
    finally:
        db.close()
