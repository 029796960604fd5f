from fastapi import APIRouter

from app.api.routes import ai, blog, contact, events, login, subscription, utils

api_router = APIRouter()
api_router.include_router(login.router)
api_router.include_router(utils.router)
api_router.include_router(contact.router)
api_router.include_router(subscription.router)
api_router.include_router(blog.router)
api_router.include_router(events.router)
api_router.include_router(ai.router)
