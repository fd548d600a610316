from __future__ import annotations

import random
from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from pydantic import BaseModel, Field

from src.admission.policy import RandomSource

from .review import review_admission
from .settings import WebhookSettings

ADMISSION_API_VERSION = "admission.k8s.io/v1"


class AdmissionReview(BaseModel):
    apiVersion: str = Field(default=ADMISSION_API_VERSION, description="AdmissionReview API version")
    kind: str = Field(default="AdmissionReview")
    request: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Admission request submitted by the API server",
    )
    response: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Admission response produced by this webhook",
    )


def create_app(settings: Optional[WebhookSettings] = None) -> FastAPI:
    """Build the webhook app; without ``settings`` they are read from the environment."""

    app = FastAPI(
        title="Pod Security Defaults Webhook",
        description="Defaults pod and container security settings and rejects conflicting postures.",
        version="0.1.0",
    )
    app.state.settings = settings

    @app.post("/mutate", response_model=AdmissionReview, response_model_exclude_none=True)
    def mutate(
        review: AdmissionReview,
        settings: WebhookSettings = Depends(get_settings),
        rng: RandomSource = Depends(get_random_source),
    ) -> AdmissionReview:
        if review.request is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="AdmissionReview carries no request",
            )
        response = review_admission(review.request, settings=settings, rng=rng)
        return AdmissionReview(apiVersion=review.apiVersion, kind=review.kind, response=response)

    @app.get("/healthz")
    def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    return app


def get_settings(request: Request) -> WebhookSettings:
    configured = getattr(request.app.state, "settings", None)
    if configured is not None:
        return configured
    return _settings_from_env()


@lru_cache()
def _settings_from_env() -> WebhookSettings:
    return WebhookSettings.from_env()


@lru_cache()
def get_random_source() -> RandomSource:
    return random.SystemRandom()


app = create_app()


__all__ = [
    "AdmissionReview",
    "app",
    "create_app",
    "get_random_source",
    "get_settings",
]
