"""
API Routes - students (submission, dashboard, verification) and companies (recruiter view).
"""

from fastapi import APIRouter

from app.api.routes import company_routes, student_routes

api_router = APIRouter()

for module in (student_routes, company_routes):
    api_router.include_router(module.router)
