"""Data models for cranelift-bump.

These Pydantic models represent the values passed between the stages of
the bump pipeline.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class FixedVersion(BaseModel):
    """A published version of the backend crate, e.g. ``0.61.0``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["fixed"] = "fixed"
    version: str


class LocalPath(BaseModel):
    """A local checkout of the backend crates used instead of a release.

    Attributes:
        path: Directory containing the crate subdirectories (for Cranelift,
              ``<wasmtime checkout>/cranelift``).
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["path"] = "path"
    path: Path


VersionSpec = Annotated[Union[FixedVersion, LocalPath], Field(discriminator="kind")]


class ManifestTarget(BaseModel):
    """A manifest file paired with the rewrite rule applied to it.

    Attributes:
        path: Absolute path of the manifest.
        rule: "dependency" for the nested manifest declaring the crates,
              "pin" for the top-level manifest pinning the upstream commit.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    rule: Literal["dependency", "pin"]


class PatchState(BaseModel):
    """Position tracker for the top-level manifest scan.

    ``remaining`` is None while idle, otherwise the number of lines left
    before the pin line is reached.
    """

    model_config = ConfigDict(frozen=True)

    remaining: int | None = None

    @property
    def idle(self) -> bool:
        return self.remaining is None

    def advance(self) -> PatchState:
        """Move one line forward; counting stops once the target is reached."""
        if self.remaining is None or self.remaining <= 0:
            return IDLE
        return PatchState(remaining=self.remaining - 1)

    @property
    def at_target(self) -> bool:
        return self.remaining == 0


IDLE = PatchState()


class BumpReport(BaseModel):
    """Records what a bump or local run has done so far.

    The two-commit pipeline has no rollback; when a stage fails this report
    tells the operator which steps already happened.

    Attributes:
        completed: Names of the stages that finished, in order.
        version: Version the dependency was moved to, once resolved.
        commit: Upstream commit pinned, once resolved.
    """

    completed: list[str] = Field(default_factory=list)
    version: str | None = None
    commit: str | None = None
