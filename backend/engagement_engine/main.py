# backend/engagement_engine/main.py
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI

from .config import configure_logging
from .db import SessionLocal, init_db
from .seed import seed_if_needed
from .routers import scores, analytics

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create missing tables first
    init_db()

    # Optional seeding
    if os.getenv("SEED_ON_START", "false").lower() == "true":
        with SessionLocal() as db:
            seed_if_needed(db)
    yield

app = FastAPI(title="Client Engagement Scoring Engine", lifespan=lifespan)


@app.get("/")
def index():
    return {"docs": "/docs", "recompute": "/api/recompute-scores"}


# API routers
app.include_router(scores.router, prefix="/api")
app.include_router(analytics.router, prefix="/api")  # <- adds /api/accounts/{id}/quadrants
