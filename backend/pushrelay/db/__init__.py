"""Database package"""

from pushrelay.db.session import Database, get_db
from pushrelay.models.base import Base

__all__ = ["Base", "Database", "get_db"]
