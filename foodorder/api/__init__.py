# foodorder/api/__init__.py
from fastapi import APIRouter
from foodorder.api.routers import cart, health, orders, users

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(users.router)
api_router.include_router(cart.router)
api_router.include_router(orders.router)
