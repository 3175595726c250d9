from fastapi import APIRouter

from clubhouse.routes import admin, auth, clubs, matches, notifications, payments, schedule, tournaments, users

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(clubs.router)
api_router.include_router(tournaments.router)
api_router.include_router(matches.router)
api_router.include_router(schedule.router)
api_router.include_router(payments.router)
api_router.include_router(notifications.router)
api_router.include_router(admin.router)
