"""Runtime settings for proctree."""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace

SOURCES = ("psutil", "procfs")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(slots=True, frozen=True)
class Settings:
    """Settings shared by the CLI and the interactive viewer."""

    root_pid: int = 0
    source: str = "psutil"
    log_level: str = "WARNING"
    proc_root: str = "/proc"

    def __post_init__(self) -> None:
        if self.root_pid < 0:
            raise ValueError(f"root_pid must be >= 0, got {self.root_pid}")
        if self.source not in SOURCES:
            raise ValueError(f"source must be one of {', '.join(SOURCES)}, got {self.source!r}")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from PROCTREE_* environment variables."""
        env = os.environ if environ is None else environ
        root_pid = env.get("PROCTREE_ROOT_PID", "0")
        try:
            pid = int(root_pid)
        except ValueError:
            raise ValueError(f"PROCTREE_ROOT_PID must be an integer, got {root_pid!r}") from None

        return cls(
            root_pid=pid,
            source=env.get("PROCTREE_SOURCE", "psutil").strip().lower(),
            log_level=env.get("PROCTREE_LOG_LEVEL", "WARNING").strip().upper(),
            proc_root=env.get("PROCTREE_PROC_ROOT", "/proc"),
        )

    def override(self, **changes: object) -> "Settings":
        """Return a copy with every non-None value in ``changes`` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def configure_logging(level: str) -> None:
    """Send log records to stderr at ``level``."""
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
