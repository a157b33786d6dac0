"""
API Router
Combines all endpoint routers
"""
from fastapi import APIRouter
from cea_dashboard.api.v1.endpoints import (
    agents,
    contacts,
    dashboard,
    organizations,
    processes,
    scheduled_calls,
    webhooks,
)

api_router = APIRouter()

# Provider callbacks (no user auth)
api_router.include_router(webhooks.router)

# Dashboard
api_router.include_router(dashboard.router)
api_router.include_router(contacts.router)
api_router.include_router(scheduled_calls.router)
api_router.include_router(processes.router)
api_router.include_router(organizations.router)

# Agent configuration
api_router.include_router(agents.router)
