"""
Runtime environment guards and dependency checks.
"""

import shutil
from pathlib import Path
from typing import Dict, Iterable, List

REQUIRED_MEDIA_TOOLS = ("ffmpeg", "ffprobe")


def parse_bool_env(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def missing_runtime_tools(tools: Iterable[str]) -> List[str]:
    return [tool for tool in tools if shutil.which(tool) is None]


def run_startup_runtime_checks(*, workspace_root: Path, strict_tools: bool) -> Dict[str, object]:
    """Verify the media tools exist and the workspace root is writable."""
    report: Dict[str, object] = {"ok": True}

    workspace_root.mkdir(parents=True, exist_ok=True)
    marker = workspace_root / ".write_check.tmp"
    try:
        marker.write_text("ok", encoding="utf-8")
        marker.unlink(missing_ok=True)
        report["workspace"] = {"path": str(workspace_root), "writable": True}
    except OSError as exc:
        report["workspace"] = {"path": str(workspace_root), "writable": False, "error": str(exc)}
        report["ok"] = False

    missing = missing_runtime_tools(REQUIRED_MEDIA_TOOLS)
    report["tools"] = {"required": list(REQUIRED_MEDIA_TOOLS), "missing": missing}
    if missing:
        report["ok"] = False
        if strict_tools:
            raise RuntimeError("Missing required runtime tools: " + ", ".join(missing))

    return report
