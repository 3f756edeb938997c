# API routes
from tablebook.api.availability import router as availability_router
from tablebook.api.reservations import router as reservations_router


__all__ = [
    "availability_router",
    "reservations_router",
]
