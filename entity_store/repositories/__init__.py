"""
Repository pattern implementation for data persistence.

This module provides the abstract repository contract and the concrete
backends: in-memory, delimited-text file and structured-markup (JSON) file.
"""

from .base import EMPTY_ID, Entity, Identifiable, Repository, UpdateMissPolicy
from .factory import BackendType, create_repository, create_repository_from_settings
from .file_repository import (
    DelimitedTextRepository,
    FileRepository,
    MalformedRecordPolicy,
    StructuredMarkupRepository,
)
from .memory_repository import InMemoryRepository

__all__ = [
    "EMPTY_ID",
    "Entity",
    "Identifiable",
    "Repository",
    "UpdateMissPolicy",
    "InMemoryRepository",
    "FileRepository",
    "DelimitedTextRepository",
    "StructuredMarkupRepository",
    "MalformedRecordPolicy",
    "BackendType",
    "create_repository",
    "create_repository_from_settings",
]
