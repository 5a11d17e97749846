"""Step record: the hooks a skill author supplies for one unit of conversation."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stepflow.connectors.base import IncomingMessage

EntryHook = Callable[["IncomingMessage"], str]
InputHook = Callable[["IncomingMessage"], None]
CompleteHook = Callable[["IncomingMessage"], "tuple[bool, str]"]


@dataclass(frozen=True)
class Step:
    """One step of a skill.

    on_entry prepares the step and asks the user for something. It runs once
    per visit, so do any searching or fetching there.

    on_input records the user's answer (usually via Sequencer.remember). It is
    called for every message until on_complete says the step is done. It must
    not raise: log failures inside the hook or the helpers it calls.

    on_complete returns (done, prompt). When done is False a non-empty prompt
    is shown instead of calling on_input, e.g. to ask the user to retry.

    memory names a remembered preference. If the user already has a value for
    it, the step is skipped.
    """

    on_entry: EntryHook
    on_input: InputHook
    on_complete: CompleteHook
    memory: str = ""
