import os
from dataclasses import dataclass

from dotenv import load_dotenv


BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
load_dotenv(dotenv_path=os.path.join(BACKEND_DIR, ".env"))


def _csv(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    database_url: str = os.getenv(
        "ACCESS_DATABASE_URL", f"sqlite:///{os.path.join(BACKEND_DIR, 'classbridge_access.db')}"
    )
    jwt_secret: str = os.getenv("ACCESS_JWT_SECRET", os.getenv("JWT_SECRET", "change-me-in-production"))
    jwt_algorithm: str = os.getenv("ACCESS_JWT_ALGORITHM", "HS256")
    jwt_exp_minutes: int = int(os.getenv("ACCESS_JWT_EXP_MINUTES", "60"))
    bcrypt_rounds: int = int(os.getenv("ACCESS_BCRYPT_ROUNDS", "12"))
    seed_password: str = os.getenv("ACCESS_SEED_PASSWORD", "ChangeMe@123")
    cors_origins: tuple[str, ...] = _csv(
        os.getenv("ACCESS_CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")
    )
    host: str = os.getenv("BACKEND_HOST", "127.0.0.1")
    port: int = int(os.getenv("BACKEND_PORT", "8000"))
    reload: bool = os.getenv("BACKEND_RELOAD", "false").lower() == "true"


settings = Settings()
