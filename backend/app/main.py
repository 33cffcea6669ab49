from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .core.logging_config import setup_logging

# Routers
from .routers.health import router as health_router
from .routers.ingest import router as ingest_router
from .routers.explore import router as explore_router
from .routers.nlq import router as nlq_router

# ---------------------------------------------------------
# Logging & App init
# ---------------------------------------------------------
setup_logging()

api = FastAPI(title=settings.project_name)

# ---------------------------------------------------------
# CORS middleware
# ---------------------------------------------------------
api.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------
# Routers
# ---------------------------------------------------------

# Health: expose /health (tests call GET /health)
api.include_router(health_router, prefix="/health", tags=["health"])

# Upload & dataset management / data exploration / assistant
api.include_router(ingest_router, prefix="/ingest", tags=["ingest"])
api.include_router(explore_router, prefix="/explore", tags=["explore"])
api.include_router(nlq_router, prefix="/nlq", tags=["nlq"])


@api.get("/")
def root():
    return {
        "status": "ok",
        "project": settings.project_name,
    }


# This is what pytest imports: from backend.app.main import app
app = api
