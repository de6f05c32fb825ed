"""
Database models package.

WHY: Centralizing model imports ensures Alembic can discover all models
for migration generation and makes it easier to import models elsewhere.
"""

from pushrelay.models.base import Base
from pushrelay.models.push_subscription import PushSubscription

__all__ = [
    "Base",
    "PushSubscription",
]
