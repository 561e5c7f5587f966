# API routers
from . import content_router, review_router, simulation_router

__all__ = ["content_router", "review_router", "simulation_router"]
