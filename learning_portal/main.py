# learning_portal/main.py
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import func, select

from learning_portal.core.config import settings
from learning_portal.core.logging import init_logging
from learning_portal.models.db import engine, SessionLocal, Base
from learning_portal.models import entities  # ensure models are registered
from learning_portal.routers import auth, curriculum, dashboard, notifications, students
from learning_portal.utils.csv_loader import bootstrap_from_csv, seed_default_catalogue

log = logging.getLogger(__name__)


# ---------- DB BOOTSTRAP ----------
def _init_db():
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        if settings.SEED_CSV_PATH:
            if not db.scalar(select(func.count()).select_from(entities.Lesson)):
                bootstrap_from_csv(db, Path(settings.SEED_CSV_PATH))
        seed_default_catalogue(db)


@asynccontextmanager
async def lifespan(app: FastAPI):
    _init_db()
    log.info("%s started", settings.APP_NAME)
    yield


def create_app() -> FastAPI:
    init_logging()
    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------- API ROUTERS ----------
    app.include_router(auth.router)
    app.include_router(students.router)
    app.include_router(curriculum.router)
    app.include_router(notifications.router)
    app.include_router(dashboard.router)

    # ---------- HEALTH ----------
    @app.get("/healthz")
    def health():
        return {"ok": True, "app": settings.APP_NAME}

    return app


app = create_app()
