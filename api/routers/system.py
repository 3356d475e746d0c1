"""System/utility endpoints
"""

from __future__ import annotations

import logging

from fastapi import APIRouter
from pydantic import BaseModel

from app.settings import (
	APP_TITLE,
	APP_VERSION,
	JUDGE_MAX_POLL_ATTEMPTS,
	JUDGE_POLL_INTERVAL_SECONDS,
)
from infra.services import default_registry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check():
    return {"status": "healthy", "service": APP_TITLE, "version": APP_VERSION}


@router.get("/api/config")
async def get_config():
	return {
		"languages": [
			{"key": lang.key, "id": lang.judge_id, "name": lang.display_name}
			for lang in default_registry.languages()
		],
		"judge_poll_interval_seconds": JUDGE_POLL_INTERVAL_SECONDS,
		"judge_max_poll_attempts": JUDGE_MAX_POLL_ATTEMPTS,
	}


__all__ = ["router"]
