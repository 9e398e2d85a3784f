"""
Per-run scratch directory for downloaded and generated media.
"""

import shutil
import uuid
from pathlib import Path
from typing import Optional

from repairclip.core import get_logger

logger = get_logger(__name__, component="workspace")


class JobWorkspace:
    """A unique temporary directory keyed by the run id.

    Cleanup is best-effort: removal errors are logged at debug level and never
    raised, so they cannot mask the outcome of the run.
    """

    def __init__(self, root: Path, run_id: Optional[str] = None):
        self.run_id = run_id or str(uuid.uuid4())
        self.directory = Path(root) / f"repairclip-{self.run_id}"

    def __enter__(self) -> "JobWorkspace":
        self.directory.mkdir(parents=True, exist_ok=True)
        return self

    def __exit__(self, exc_type, exc_val, _exc_tb) -> None:
        self.cleanup()

    def path(self, name: str) -> Path:
        return self.directory / name

    def cleanup(self) -> None:
        if not self.directory.exists():
            return
        for entry in self.directory.iterdir():
            try:
                if entry.is_dir():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
            except OSError as exc:
                logger.debug("Could not remove workspace file", extra={"file": str(entry), "error": str(exc)})
        try:
            self.directory.rmdir()
        except OSError as exc:
            logger.debug("Could not remove workspace", extra={"workspace": str(self.directory), "error": str(exc)})
