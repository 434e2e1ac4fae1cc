"""Process record sources for proctree."""

import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

import psutil

from proctree.errors import EmptySnapshot, SourceUnavailable
from proctree.models import ProcessRecord

logger = logging.getLogger(__name__)


class ProcessRecordSource(Protocol):
    """Anything that can produce a flat snapshot of process records."""

    def fetch_all(self) -> list[ProcessRecord]: ...


class StaticRecordSource:
    """Source backed by a fixed, in-memory collection of records."""

    def __init__(self, records: Iterable[ProcessRecord]) -> None:
        self._records = list(records)

    def fetch_all(self) -> list[ProcessRecord]:
        return list(self._records)


class PsutilRecordSource:
    """
    Source that enumerates processes using psutil.

    Processes that exit mid-scan, deny access or are zombies are skipped.
    """

    attrs = ["pid", "ppid", "name"]

    def fetch_all(self) -> list[ProcessRecord]:
        """Collect a record for every process visible to the caller."""
        records: list[ProcessRecord] = []

        try:
            processes = psutil.process_iter(attrs=self.attrs)
            for proc in processes:
                try:
                    info = proc.info
                    records.append(
                        ProcessRecord(
                            pid=info.get("pid", proc.pid),
                            parent_pid=info.get("ppid") or 0,
                            name=printable_name(info.get("name") or ""),
                        )
                    )
                except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                    logger.debug("Skipping process %s", proc.pid)
                    continue
        except psutil.AccessDenied as exc:
            raise SourceUnavailable(f"access denied ({exc})") from exc
        except (psutil.Error, NotImplementedError, OSError) as exc:
            raise SourceUnavailable(str(exc) or repr(exc)) from exc

        return records


class ProcFSRecordSource:
    """
    Source that reads the Linux /proc pseudo-filesystem directly.

    Each numeric directory under the proc root is a process; its ``stat`` file
    starts with ``pid (comm) state ppid``. The command name can itself contain
    spaces and parentheses, so it is taken between the first ``(`` and the
    last ``)``.
    """

    def __init__(self, proc_root: str | os.PathLike[str] = "/proc") -> None:
        self._proc_root = Path(proc_root)

    @property
    def proc_root(self) -> Path:
        return self._proc_root

    def fetch_all(self) -> list[ProcessRecord]:
        try:
            entries = list(self._proc_root.iterdir())
        except OSError as exc:
            raise SourceUnavailable(f"cannot read {self._proc_root} ({exc.strerror or exc})") from exc

        records: list[ProcessRecord] = []
        for entry in entries:
            if not entry.name.isdigit():
                continue
            record = self._read_stat(entry)
            if record is not None:
                records.append(record)
        return records

    def _read_stat(self, entry: Path) -> ProcessRecord | None:
        """Parse ``<entry>/stat``, returning None when it is gone or malformed."""
        try:
            line = (entry / "stat").read_text(encoding="utf-8", errors="replace")
        except OSError:
            logger.debug("Skipping %s: stat unreadable", entry.name)
            return None

        record = parse_stat_line(line)
        if record is None or record.pid != int(entry.name):
            logger.debug("Skipping %s: malformed stat line", entry.name)
            return None
        return record


def parse_stat_line(line: str) -> ProcessRecord | None:
    """Parse the leading ``pid (comm) state ppid`` fields of a stat line."""
    open_paren = line.find("(")
    close_paren = line.rfind(")")
    if open_paren <= 0 or close_paren < open_paren:
        return None

    fields = line[close_paren + 1 :].split()
    if len(fields) < 2:
        return None

    try:
        pid = int(line[:open_paren].strip())
        ppid = int(fields[1])
    except ValueError:
        return None

    return ProcessRecord(pid=pid, parent_pid=ppid, name=line[open_paren + 1 : close_paren])


def printable_name(name: str) -> str:
    """Replace undecodable bytes that psutil kept as surrogates."""
    return name.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def make_source(kind: str, proc_root: str | os.PathLike[str] = "/proc") -> ProcessRecordSource:
    """Return the process record source registered under ``kind``."""
    if kind == "psutil":
        return PsutilRecordSource()
    if kind == "procfs":
        return ProcFSRecordSource(proc_root)
    raise ValueError(f"Unknown process source: {kind!r}")


def snapshot(source: ProcessRecordSource) -> list[ProcessRecord]:
    """Fetch all records from ``source``, failing if there are none."""
    records = source.fetch_all()
    if not records:
        raise EmptySnapshot()
    logger.info("Collected %d process records", len(records))
    return records
