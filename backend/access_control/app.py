import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import init_access_control
from .config import settings
from .routes import router


# Configure Logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Initializing access control...")
    init_access_control()
    logger.info("Access control initialized.")
    yield
    logger.info("Shutting down...")


app = FastAPI(title="Classbridge School Administration API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/health")
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    try:
        uvicorn.run("access_control.app:app", host=settings.host, port=settings.port, reload=settings.reload)
    except OSError as e:
        if "address already in use" in str(e).lower():
            logger.error(f"Port {settings.port} is already in use. Set BACKEND_PORT to another port.")
        raise
