import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import auth, company, health, student
from app.core import config
from app.core.errors import register_exception_handlers
from app.core.logging_config import setup_logging
from app.db.init_db import init_db
from app.db.migrate import run_migrations

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    if config.RUN_MIGRATIONS:
        run_migrations()
    else:
        init_db()
    if not config.JWT_SECRET:
        logger.error("JWT_SECRET is not set; authenticated requests will fail with 500")
    logger.info(f"InternHub API started (environment={config.ENVIRONMENT})")
    yield


# ============================================
# ✅ FASTAPI APP INIT
# ============================================

app = FastAPI(title="InternHub API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT"],
    allow_headers=["Authorization", "Content-Type"],
)

register_exception_handlers(app)


# ============================================
# ✅ REGISTER ALL ROUTERS
# ============================================

app.include_router(auth.router)
app.include_router(company.router)
app.include_router(student.router)
app.include_router(health.router)


@app.get("/")
def root():
    return {"status": "InternHub API running"}
