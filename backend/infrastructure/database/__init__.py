from .connection import Database, get_db
from .models.base import Base

__all__ = [
    "Base",
    "Database",
    "get_db",
]
