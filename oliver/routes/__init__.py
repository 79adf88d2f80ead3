from fastapi import APIRouter

api_router = APIRouter()

# Import route modules here
from oliver.routes import budgets, trash, users

api_router.include_router(budgets.router)
api_router.include_router(trash.router)
api_router.include_router(users.router)
