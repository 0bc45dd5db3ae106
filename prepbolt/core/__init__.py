"""
Core module containing configuration, database, AI services, scoring and utilities
"""

from .config import config
from .database import get_db_manager
from .ai_services import get_ai_service

__all__ = [
    "config",
    "get_db_manager",
    "get_ai_service"
]
