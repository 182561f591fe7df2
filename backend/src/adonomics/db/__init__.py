# Adonomics Database Module
from .models import Advertisement, Base, User, UserPreference
from .connection import (
    get_db,
    get_db_context,
    get_engine,
    get_session_factory,
    make_engine,
    make_session_factory,
)
from . import crud
from . import schemas
from .router import router as users_router

__all__ = [
    # Models
    "Base",
    "User",
    "UserPreference",
    "Advertisement",
    # Connection
    "get_engine",
    "get_session_factory",
    "get_db",
    "get_db_context",
    "make_engine",
    "make_session_factory",
    # CRUD
    "crud",
    # Schemas
    "schemas",
    # Router
    "users_router",
]
