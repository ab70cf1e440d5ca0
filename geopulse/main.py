# geopulse/main.py
# -----------------------------------------------------------------------------
# FastAPI entrypoint
# - logging + audit table creation on startup
# -----------------------------------------------------------------------------
from fastapi import FastAPI

from geopulse.core.config import settings
from geopulse.core.logging import setup_logging
from geopulse.db.session import init_db
from geopulse.routers import admin, analytics, search

app = FastAPI(title=settings.APP_NAME)


@app.on_event("startup")
async def on_startup():
    setup_logging()
    await init_db()


app.include_router(analytics.router)
app.include_router(search.router)
app.include_router(admin.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
