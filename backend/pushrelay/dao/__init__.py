"""
Data Access Object (DAO) package.

WHY: DAOs provide a clean separation between database operations and business logic,
making the codebase more testable and maintainable.
"""

from pushrelay.dao.base import BaseDAO
from pushrelay.dao.push_subscription import PushSubscriptionDAO

__all__ = [
    "BaseDAO",
    "PushSubscriptionDAO",
]
