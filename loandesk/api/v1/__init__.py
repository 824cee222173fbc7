from fastapi import APIRouter

from loandesk.api.v1.routers import admin, checkout, health, loan_applications, webhooks

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(loan_applications.router)
api_router.include_router(checkout.router)
api_router.include_router(webhooks.router)
api_router.include_router(admin.router)

__all__ = ["api_router"]
