"""
Repositories

Typed access to user and article records in the record store.
"""

from .articles import ArticleRepository, PROJECTED_FIELDS, UPDATABLE_FIELDS
from .users import IdentityRepository

__all__ = [
    "ArticleRepository",
    "IdentityRepository",
    "PROJECTED_FIELDS",
    "UPDATABLE_FIELDS",
]
