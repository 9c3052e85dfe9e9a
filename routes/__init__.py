# Routes package __init__.py - re-exports routers for main.py convenience
from .auth import router as auth_router
from .children import router as children_router
from .packages import router as packages_router
from .assignments import router as assignments_router
from .collectibles import router as collectibles_router
from .stats import router as stats_router
from .reports import router as reports_router

__all__ = [
    'auth_router', 'children_router', 'packages_router', 'assignments_router',
    'collectibles_router', 'stats_router', 'reports_router',
]
