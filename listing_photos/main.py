from __future__ import annotations

import logging

from fastapi import FastAPI

from listing_photos.config import get_settings
from listing_photos.handlers import properties_handler

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Missing bucket configuration is fatal at start-up, never per request.
storage_config = settings.storage_config()
logger.info("Serving photos from bucket '%s' via %s", storage_config.bucket, storage_config.endpoint)

app = FastAPI(title="Listing Photos API")

app.include_router(properties_handler.router)


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}
