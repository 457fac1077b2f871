"""Authentication entry point: sign in, sign up and sign out."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from cyclesync.config import Settings
from cyclesync.dependencies import AppSettings, Auth, CurrentSession
from cyclesync.middleware.session import clear_session_cookies, set_session_cookies
from cyclesync.models.auth import Session
from cyclesync.services.supabase_auth import AuthError
from cyclesync.templating import templates
from cyclesync.views.notifications import ToastCollector

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger("cyclesync.auth")

DASHBOARD_PATH = "/dashboard"


def _render(
    request: Request,
    settings: Settings,
    toasts: ToastCollector,
    *,
    email: str | None = None,
    status_code: int = 200,
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "auth.html",
        {"app_name": settings.app_name, "toasts": toasts.toasts, "email": email},
        status_code=status_code,
    )


def _signed_in(request: Request, session: Session, settings: Settings) -> Response:
    response = RedirectResponse(DASHBOARD_PATH, status_code=303)
    set_session_cookies(response, session, settings)
    request.state.session_cookies_handled = True
    return response


@router.get("", response_class=HTMLResponse)
async def auth_page(request: Request, session: CurrentSession, settings: AppSettings) -> Response:
    if session is not None:
        return RedirectResponse(DASHBOARD_PATH, status_code=303)
    return _render(request, settings, ToastCollector())


@router.post("/sign-in")
async def sign_in(
    request: Request,
    auth: Auth,
    settings: AppSettings,
    email: str = Form(...),
    password: str = Form(...),
) -> Response:
    try:
        session = await auth.sign_in_with_password(email, password)
    except AuthError as exc:
        toasts = ToastCollector()
        toasts.notify("Error", exc.message, "destructive")
        return _render(request, settings, toasts, email=email, status_code=400)
    return _signed_in(request, session, settings)


@router.post("/sign-up")
async def sign_up(
    request: Request,
    auth: Auth,
    settings: AppSettings,
    email: str = Form(...),
    password: str = Form(...),
) -> Response:
    toasts = ToastCollector()
    try:
        session = await auth.sign_up(email, password)
    except AuthError as exc:
        toasts.notify("Error", exc.message, "destructive")
        return _render(request, settings, toasts, email=email, status_code=400)

    if session is None:
        toasts.notify("Success", "Check your email to confirm your account.")
        return _render(request, settings, toasts, email=email)
    return _signed_in(request, session, settings)


@router.post("/sign-out")
async def sign_out(
    request: Request, auth: Auth, session: CurrentSession, settings: AppSettings
) -> Response:
    if session is not None:
        try:
            await auth.sign_out(session.access_token)
        except AuthError as exc:
            # The local cookies are dropped either way
            logger.warning("Remote sign-out failed: %s", exc.message)
    response = RedirectResponse("/", status_code=303)
    clear_session_cookies(response, settings)
    request.state.session_cookies_handled = True
    return response
