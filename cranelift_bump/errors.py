"""Error types raised by the bump pipeline.

Every failure is surfaced as a BumpError subclass and propagates up to the
CLI, which turns it into a non-zero exit status. Nothing is retried or
rolled back along the way.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import BumpReport


class BumpError(Exception):
    """Base class for all errors raised by cranelift-bump."""


class PreconditionError(BumpError):
    """The repository is not in a state we can work on."""


class UsageError(BumpError):
    """Invalid arguments or configuration."""


class ManifestIOError(BumpError):
    """A manifest file could not be read or written."""


class NetworkError(BumpError):
    """A registry or history-host request failed or returned garbage."""


class ProcessError(BumpError):
    """A child process could not be started or exited non-zero."""


class PipelineError(BumpError):
    """A pipeline stage failed after zero or more stages completed.

    Wraps the original error together with the report of what was already
    done, so the operator knows what to resume or revert by hand.
    """

    def __init__(self, stage: str, cause: BumpError, report: BumpReport) -> None:
        self.stage = stage
        self.cause = cause
        self.report = report
        super().__init__(self._format())

    def _format(self) -> str:
        lines = [f"{self.stage} failed: {self.cause}"]
        if self.report.completed:
            lines.append("Completed before the failure:")
            lines.extend(f"  - {name}" for name in self.report.completed)
        else:
            lines.append("No stage completed; the repository was not modified.")
        return "\n".join(lines)
