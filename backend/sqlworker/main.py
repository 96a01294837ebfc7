from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sqlworker.api.v1.routes.health import router as health_router
from sqlworker.api.v1.routes.monitoring import router as monitoring_router
from sqlworker.core.db import init_engine


# never override variables already set in the environment
load_dotenv(override=False)
init_engine()

app = FastAPI(title="SQL Worker Monitoring API")

# Read-only dashboard API; GET only.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(health_router, prefix="/v1")
app.include_router(monitoring_router)
