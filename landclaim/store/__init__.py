"""
asyncpg persistence: pool, unit of work and per-table repositories.
"""

from landclaim.store.database import Database, UnitOfWork
from landclaim.store.documents import DocumentRepository
from landclaim.store.drafts import DraftRepository
from landclaim.store.prohibited_areas import ProhibitedAreaRepository
from landclaim.store.submissions import SubmissionRepository

__all__ = [
    "Database",
    "DocumentRepository",
    "DraftRepository",
    "ProhibitedAreaRepository",
    "SubmissionRepository",
    "UnitOfWork",
]
