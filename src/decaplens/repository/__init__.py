from __future__ import annotations

from .builders import RepositoryBuilder, repository
from .store import HISTORY_FILE, PersistentRepository, Repository

__all__ = ["HISTORY_FILE", "PersistentRepository", "Repository", "RepositoryBuilder", "repository"]
