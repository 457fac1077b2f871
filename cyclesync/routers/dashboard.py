"""Session-gated dashboard: cycle history and "Start New Cycle"."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from cyclesync.config import Settings
from cyclesync.dependencies import AppSettings, CurrentSession, OptionalUser, Repository
from cyclesync.formatting import parse_form_date
from cyclesync.templating import templates
from cyclesync.views.dashboard import DashboardView
from cyclesync.views.navigation import RedirectNavigator
from cyclesync.views.notifications import ToastCollector

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def _render(
    request: Request,
    view: DashboardView,
    toasts: ToastCollector,
    navigator: RedirectNavigator,
    settings: Settings,
) -> Response:
    if navigator.location:
        return RedirectResponse(navigator.location, status_code=303)
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {"app_name": settings.app_name, "view": view, "toasts": toasts.toasts},
    )


@router.get("", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    session: CurrentSession,
    identity: OptionalUser,
    repository: Repository,
    settings: AppSettings,
) -> Response:
    toasts, navigator = ToastCollector(), RedirectNavigator()
    view = DashboardView(
        repository, toasts, navigator, auth_path=settings.auth_redirect_path
    )
    await view.activate(session, identity)
    return _render(request, view, toasts, navigator, settings)


@router.post("/cycles", response_class=HTMLResponse)
async def start_new_cycle(
    request: Request,
    session: CurrentSession,
    identity: OptionalUser,
    repository: Repository,
    settings: AppSettings,
    start_date: str = Form(default=""),
) -> Response:
    toasts, navigator = ToastCollector(), RedirectNavigator()
    view = DashboardView(
        repository, toasts, navigator, auth_path=settings.auth_redirect_path
    )
    if not view.admit(session):
        return _render(request, view, toasts, navigator, settings)

    try:
        selected = parse_form_date(start_date, default=date.today())
    except ValueError:
        toasts.notify("Error", f"Invalid date: {start_date}", "destructive")
        await view.fetch_cycles(identity)
        return _render(request, view, toasts, navigator, settings)

    # a successful insert refreshes the history itself
    if not await view.start_new_cycle(identity, selected):
        await view.fetch_cycles(identity)
    return _render(request, view, toasts, navigator, settings)
