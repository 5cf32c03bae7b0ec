"""
Reconciliation Package

Decides whether a submitted article is a new save, a highlight merge into an
existing record, or a rejection, and reconciles client-held article sets
against the server archive.
"""

from .engine import ReconciliationEngine, Summarizer
from .results import ArticleListing, SaveOutcome, SyncItemResult, SyncReport

__all__ = [
    "ReconciliationEngine",
    "Summarizer",
    "ArticleListing",
    "SaveOutcome",
    "SyncItemResult",
    "SyncReport",
]
