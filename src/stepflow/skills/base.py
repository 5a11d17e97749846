"""Skill protocol and shared types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from stepflow.flow.sequencer import Sequencer


@dataclass
class SkillResponse:
    """What a skill produced for one message. Empty text means no prompt."""

    text: str
    package: str
    step: int


@runtime_checkable
class Skill(Protocol):
    """Protocol that all skills must implement."""

    @property
    def name(self) -> str:
        """Package id, also the memory namespace."""
        ...

    def build(self, sequencer: Sequencer) -> None:
        """Register this skill's steps (and reset hook) on a fresh sequencer."""
        ...
