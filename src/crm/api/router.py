"""API router -- aggregates all CRM endpoint routers under /api."""

from __future__ import annotations

from fastapi import APIRouter

from src.crm.api.routes import accounts, activities, contacts, deals, health, leads, reports, users

router = APIRouter()

router.include_router(health.router)

api_router = APIRouter(prefix="/api")
api_router.include_router(contacts.router)
api_router.include_router(accounts.router)
api_router.include_router(activities.router)
api_router.include_router(deals.router)
api_router.include_router(leads.router)
api_router.include_router(reports.router)
api_router.include_router(users.router)

router.include_router(api_router)
