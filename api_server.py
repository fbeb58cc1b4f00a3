from __future__ import annotations  # FastAPI server exposing the interview orchestrator

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from api.routes import router as interview_router
from config.settings import settings

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:  # Build the ASGI app with CORS and artifact hosting
    app = FastAPI(title="Interview Orchestrator API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(interview_router)

    os.makedirs(settings.CONTENT_DIR, exist_ok=True)
    app.mount(settings.CONTENT_URL_PREFIX, StaticFiles(directory=settings.CONTENT_DIR), name="uploads")
    logger.info("Serving artifacts from %s at %s", settings.CONTENT_DIR, settings.CONTENT_URL_PREFIX)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api_server:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
