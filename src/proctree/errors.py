"""Exception types raised by proctree."""


class ProcTreeError(Exception):
    """Base class for all proctree errors."""


class SourceUnavailable(ProcTreeError):
    """The process table could not be read at all."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Process table unavailable: {reason}")
        self.reason = reason


class EmptySnapshot(ProcTreeError):
    """The source was readable but returned no process records."""

    def __init__(self) -> None:
        super().__init__("No process information retrieved")


class CyclicParentage(ProcTreeError):
    """A parent-pid chain leads back to a process that was already visited."""

    def __init__(self, pid: int, parent_pid: int) -> None:
        super().__init__(f"Cyclic parentage at PID {pid} (PPID {parent_pid})")
        self.pid = pid
        self.parent_pid = parent_pid

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CyclicParentage):
            return NotImplemented
        return (self.pid, self.parent_pid) == (other.pid, other.parent_pid)

    def __hash__(self) -> int:
        return hash((self.pid, self.parent_pid))


class UnsupportedVerb(ProcTreeError, ValueError):
    """A route verb outside the supported set was used."""

    def __init__(self, verb: object) -> None:
        super().__init__(f"Only GET/POST/PUT/DELETE verbs are supported, got: {verb!r}")
        self.verb = verb
