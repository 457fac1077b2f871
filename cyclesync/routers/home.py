"""Public landing page."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from cyclesync.dependencies import AppSettings
from cyclesync.templating import templates

router = APIRouter(tags=["pages"])

FEATURES: list[dict[str, str]] = [
    {
        "title": "Cycle Tracking",
        "description": "Smart menstrual cycle tracking with personalized insights",
    },
    {
        "title": "Symptom Logging",
        "description": "Track symptoms and get phase-specific recommendations",
    },
    {
        "title": "Nutrition Guide",
        "description": "Personalized nutrition advice for each cycle phase",
    },
    {
        "title": "Partner Support",
        "description": "Connect with partners for better understanding and support",
    },
]


@router.get("/", response_class=HTMLResponse)
async def home(request: Request, settings: AppSettings) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "home.html",
        {
            "app_name": settings.app_name,
            "features": FEATURES,
            "auth_path": settings.auth_redirect_path,
        },
    )
