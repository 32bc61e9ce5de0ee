from poketeams.api.admin import router as admin_router
from poketeams.api.cards import router as cards_router
from poketeams.api.health import router as health_router
from poketeams.api.mystery_box import router as mystery_box_router
from poketeams.api.teams import router as teams_router
from poketeams.api.users import router as users_router

__all__ = [
    "admin_router",
    "cards_router",
    "health_router",
    "mystery_box_router",
    "teams_router",
    "users_router",
]
