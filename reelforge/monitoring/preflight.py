"""
Pre-flight checks run before the server starts.

Each check returns a HealthCheck; ``run_preflight_checks`` aggregates them.
The server refuses to start when any check is CRITICAL.
"""

import logging
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from reelforge import settings
from reelforge.storage.factory import describe_storage_config

logger = logging.getLogger(__name__)


class HealthStatus(Enum):
    """Health status enumeration"""
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass
class HealthCheck:
    """Health check result"""
    name: str
    status: HealthStatus
    message: str
    timestamp: datetime = field(default_factory=datetime.now)
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status is not HealthStatus.CRITICAL


def check_executable(name: str, path: str) -> HealthCheck:
    """Run ``<path> -version`` and report whether it works."""
    try:
        result = subprocess.run([path, '-version'], capture_output=True, text=True, timeout=5)
    except OSError:
        return HealthCheck(name, HealthStatus.CRITICAL, f"{name} not found in PATH ({path})")
    except subprocess.TimeoutExpired:
        return HealthCheck(name, HealthStatus.WARNING, f"{name} check timed out")

    if result.returncode != 0:
        return HealthCheck(name, HealthStatus.CRITICAL, f"{name} exited with code {result.returncode}")

    version = result.stdout.split('\n')[0] if result.stdout else 'Unknown'
    return HealthCheck(name, HealthStatus.HEALTHY, f"{name} available", details={'version': version})


def check_workspace_root(root: Optional[str] = None) -> HealthCheck:
    """The workspace root must exist (or be creatable) and be writable."""
    path = Path(root or settings.get_workspace_root())
    try:
        path.mkdir(parents=True, exist_ok=True)
        probe = path / ".preflight"
        probe.write_text("ok", encoding="utf-8")
        probe.unlink()
    except OSError as e:
        return HealthCheck('workspace', HealthStatus.CRITICAL, f"Workspace root {path} is not usable: {e}")
    return HealthCheck('workspace', HealthStatus.HEALTHY, f"Workspace root ready: {path.resolve()}")


def check_storage_config() -> HealthCheck:
    problems = describe_storage_config()
    backend = settings.get_storage_backend()
    if problems:
        return HealthCheck(
            'storage',
            HealthStatus.CRITICAL,
            f"Storage backend '{backend}' is misconfigured: {'; '.join(problems)}",
        )
    return HealthCheck('storage', HealthStatus.HEALTHY, f"Storage backend '{backend}' configuration found")


def run_preflight_checks() -> List[HealthCheck]:
    """Run every pre-flight check and log the outcome of each."""
    checks = [
        check_executable('ffmpeg', settings.get_ffmpeg_path()),
        check_executable('ffprobe', settings.get_ffprobe_path()),
        check_workspace_root(),
        check_storage_config(),
    ]
    for check in checks:
        if check.status is HealthStatus.HEALTHY:
            logger.info(f"✅ {check.message}")
        elif check.status is HealthStatus.WARNING:
            logger.warning(f"⚠️ {check.message}")
        else:
            logger.error(f"❌ {check.message}")
    return checks


def preflight_ok(checks: List[HealthCheck]) -> bool:
    return all(check.ok for check in checks)
