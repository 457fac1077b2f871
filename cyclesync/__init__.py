"""CycleSync: a session-gated menstrual cycle tracker on Supabase.

Subpackages:
    middleware/ — Session resolution and security headers
    models/     — Pydantic models for cycles and auth payloads
    routers/    — Landing, auth, dashboard, JSON API and health routes
    services/   — Auth collaborator, data stores and the cycle repository
    views/      — Dashboard view model, session guard, toasts and navigation
"""
