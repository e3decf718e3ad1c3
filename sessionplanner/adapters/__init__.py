"""
Adapters layer - Commitment store integrations.
"""

from .file_store import FileCommitmentStore, InMemoryCommitmentStore
from .http_store import HttpCommitmentStore

__all__ = ["FileCommitmentStore", "HttpCommitmentStore", "InMemoryCommitmentStore"]
