from sqlalchemy.orm import Session

from .database import Base, engine
from .permissions import verify_registry
from .routes import router
from .services import seed_default_users


def init_access_control() -> None:
    verify_registry()
    Base.metadata.create_all(bind=engine)
    db = Session(bind=engine)
    try:
        seed_default_users(db)
    finally:
        db.close()


__all__ = ["router", "init_access_control"]
