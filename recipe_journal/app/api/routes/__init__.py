from fastapi import APIRouter

from recipe_journal.app.api.routes import recipes

api_router = APIRouter()
api_router.include_router(recipes.router)
