"""
Shared fixtures: an in-memory database and pipeline services wired to fakes.
"""

from typing import List, Optional, Sequence

import pytest

from repairclip.config import MatchSettings, PipelineSettings
from repairclip.models.library import ClipReference
from repairclip.services.infrastructure.db import Database, LibraryClipRecord
from repairclip.services.infrastructure.llm import Analyzer
from repairclip.services.infrastructure.storage import SqlJobRepository, SqlMatchRepository
from repairclip.services.orchestration import PipelineServices
from repairclip.services.pipeline.matching import ContentMatcher

from fakes import FakeAnalyzer, FakeStitcher, FakeStorage, InMemoryCatalog


@pytest.fixture
def database():
    """Fresh in-memory SQLite database with all tables."""
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def add_library_clip(database):
    """Insert an educational_library row and return its id."""
    def _add(title: str, video_url: str, keywords: List[str], category: Optional[str] = None,
             is_active: bool = True) -> int:
        with database.session() as session:
            row = LibraryClipRecord(title=title, video_url=video_url, keywords=keywords,
                                    category=category, is_active=is_active)
            session.add(row)
            session.flush()
            return row.id
    return _add


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest.fixture
def pipeline_settings(tmp_path):
    return PipelineSettings(
        bucket="uploads",
        library_bucket="library",
        workspace_root=tmp_path / "work",
    )


@pytest.fixture
def make_services(database, fake_storage, pipeline_settings):
    """Build PipelineServices around SQL repositories and in-process fakes."""
    def _make(analyzer: Optional[Analyzer] = None, clips: Sequence[ClipReference] = (),
              stitcher: Optional[FakeStitcher] = None, matcher: Optional[ContentMatcher] = None,
              match_settings: Optional[MatchSettings] = None) -> PipelineServices:
        return PipelineServices(
            storage=fake_storage,
            jobs=SqlJobRepository(database),
            matcher=matcher or ContentMatcher(InMemoryCatalog(clips), match_settings),
            matches=SqlMatchRepository(database),
            analyzer=analyzer or FakeAnalyzer(),
            stitcher=stitcher or FakeStitcher(),
            settings=pipeline_settings,
        )
    return _make
