from fastapi import APIRouter

from app.api.v1.routes import jars, transactions

api_router = APIRouter()

api_router.include_router(jars.router)
api_router.include_router(transactions.router)
