"""Storage layer - blob gateway and relational repositories."""

from .gateway import StorageGateway, GCSStorageGateway, LocalStorageGateway
from .job_repository import JobRepository, SqlJobRepository, JobRecord
from .catalog_repository import ClipCatalog, SqlClipCatalog
from .match_repository import MatchRepository, SqlMatchRepository

__all__ = [
    "StorageGateway",
    "GCSStorageGateway",
    "LocalStorageGateway",
    "JobRepository",
    "SqlJobRepository",
    "JobRecord",
    "ClipCatalog",
    "SqlClipCatalog",
    "MatchRepository",
    "SqlMatchRepository",
]
