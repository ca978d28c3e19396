import logging
from collections.abc import Callable

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from .audit import log_audit_event
from .authorization import AuthMode, authorize
from .database import get_db_session
from .models import User
from .permissions import Permission
from .security import AuthError, decode_access_token


logger = logging.getLogger(__name__)


def _parse_token(auth_header: str | None) -> str:
    if not auth_header:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing Authorization header")
    parts = auth_header.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid auth scheme")
    return parts[1].strip()


def client_meta(request: Request) -> dict[str, str | None]:
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }


def get_current_user(
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> User:
    token = _parse_token(authorization)
    try:
        payload = decode_access_token(token)
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc

    # Authority comes from the stored role, not the role claim minted at login.
    user = db.query(User).filter(User.id == int(payload["sub"])).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid user")
    return user


def require_permissions(*required: Permission, mode: AuthMode = AuthMode.ANY) -> Callable:
    """Dependency admitting callers whose role satisfies ``required`` under ``mode``."""

    def dependency(
        request: Request,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db_session),
    ) -> User:
        if len(required) == 1:
            allowed = authorize(current_user.role, required[0])
        else:
            allowed = authorize(current_user.role, list(required), mode)

        if not allowed:
            logger.warning(
                f"Denied {request.method} {request.url.path} for user {current_user.id} "
                f"({current_user.role.value}); needs {mode.value} of {[p.value for p in required]}"
            )
            log_audit_event(
                db,
                user_id=current_user.id,
                action="unauthorized_access",
                resource_type="access_control",
                new_values={
                    "attempted_endpoint": request.url.path,
                    "method": request.method,
                    "user_role": current_user.role.value,
                    "required": [p.value for p in required],
                    "mode": mode.value,
                },
                **client_meta(request),
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_user

    return dependency
