# evently/api/v1/api.py

from fastapi import APIRouter
from evently.api.v1.endpoints import auth, events, rsvp, health

# This is the main router for the v1 API.
# It will include all the specific endpoint routers.
api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(events.router)
api_router.include_router(rsvp.router)
api_router.include_router(health.router)
