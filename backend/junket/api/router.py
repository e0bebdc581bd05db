"""
Main API router that includes all route modules.
"""
from fastapi import APIRouter
from junket.api.routes import (
    auth, users, agents, customers, staff, trips,
    rolling_records, buy_in_out_records, ocr
)

api_router = APIRouter()

# Include all route modules
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(agents.router)
api_router.include_router(customers.router)
api_router.include_router(staff.router)
api_router.include_router(trips.router)
api_router.include_router(rolling_records.router)
api_router.include_router(buy_in_out_records.router)
api_router.include_router(ocr.router)
