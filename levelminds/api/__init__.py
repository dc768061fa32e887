from fastapi import APIRouter
from levelminds.api.routes import admin, jobs, school, student, applications

api_router = APIRouter()

# Include all route modules
api_router.include_router(admin.router)
api_router.include_router(jobs.router)
api_router.include_router(school.router)
api_router.include_router(student.router)
api_router.include_router(applications.router)
