"""
Main FastAPI Application - Driver Report Engine
"""

from __future__ import annotations
import logging
import os

from fastapi import FastAPI

from drivereport import __version__
from drivereport.routes.api_reports import router as api_reports_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)

app = FastAPI(title="drivereport", version=__version__)
APP_VERSION = os.getenv("APP_VERSION", app.version)

# Include API routers
app.include_router(api_reports_router)


@app.get("/health")
def health():
    return {"status": "ok", "version": APP_VERSION}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8080")))
