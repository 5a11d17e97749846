"""Sequencer: drives one skill's steps for one user.

Each inbound message goes through drive(), which either
1. shows the current step's entry prompt (first visit, or after a wrap),
2. advances to the next step when the current one reports completion,
3. re-prompts with the completion check's override text,
4. skips steps already satisfied by a remembered preference, or
5. hands the message to the current step's input hook.

The sequencer keeps no locks. Calls for one conversation must be serialized
by the caller (see core.Hub). Durable state lives in the memory backend.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from stepflow.flow.step import Step
from stepflow.memory.entry import Memory

if TYPE_CHECKING:
    from stepflow.connectors.base import IncomingMessage
    from stepflow.memory.base import MemoryBackend

ResetHook = Callable[["IncomingMessage"], None]


def _noop_reset(msg: IncomingMessage) -> None:
    pass


class Sequencer:
    """Step controller for a single (package, user) conversation."""

    def __init__(
        self,
        package_id: str,
        store: MemoryBackend,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        self.package_id = package_id
        self.store = store
        self.logger = logger or logging.LoggerAdapter(
            logging.getLogger(f"stepflow.skills.{package_id}"), {"pkg": package_id}
        )
        self.index = 0
        self.entered = False
        self._steps: list[Step] = []
        self._reset_hook: ResetHook = _noop_reset

    # ── Setup ────────────────────────────────────────────────

    @property
    def steps(self) -> tuple[Step, ...]:
        return tuple(self._steps)

    @property
    def current(self) -> Step:
        return self._steps[self.index]

    def set_steps(self, *sequences: Iterable[Step]) -> None:
        """Append the steps of each sequence, in order."""
        for seq in sequences:
            self._steps.extend(seq)

    def set_reset_hook(self, hook: ResetHook) -> None:
        self._reset_hook = hook

    # ── Driving ──────────────────────────────────────────────

    def drive(self, msg: IncomingMessage) -> str:
        """Process one inbound message and return the prompt to show.

        An empty string means the input was consumed and no prompt is due.
        """
        # Checked before the entered flag, so the last step never takes input
        if self.index + 1 >= len(self._steps):
            self.reset(msg)
            return self.current.on_entry(msg)

        if not self.entered:
            self.entered = True
            return self.current.on_entry(msg)

        done, prompt = self.current.on_complete(msg)
        if done:
            self.index += 1
            return self._enter_current(msg)
        if prompt:
            return prompt

        if self._skip_remembered(msg):
            return self._enter_current(msg)

        self.current.on_input(msg)
        return ""

    def _skip_remembered(self, msg: IncomingMessage) -> bool:
        """Move past the current step and any following ones already remembered.

        Stops at the last step. Returns True if at least one step was skipped.
        """
        remaining = len(self._steps) - self.index - 1
        skipped = 0
        while skipped < remaining:
            key = self.current.memory
            if not key or not self.has_memory(msg, key):
                break
            self.logger.debug("step %d satisfied by memory %r", self.index, key)
            self.index += 1
            skipped += 1
        return skipped > 0

    def _enter_current(self, msg: IncomingMessage) -> str:
        prompt = self.current.on_entry(msg)
        if not prompt:
            self.logger.warning("on_entry returned an empty prompt (step %d)", self.index)
        return prompt

    def forward_input(self, msg: IncomingMessage) -> None:
        """Call the current step's input hook, bypassing transitions."""
        self.current.on_input(msg)

    def reset(self, msg: IncomingMessage) -> None:
        self.index = 0
        self.entered = False
        self._reset_hook(msg)

    # ── Memory ───────────────────────────────────────────────

    def remember(self, msg: IncomingMessage, key: str, value: Any) -> None:
        """Store value for this user under key. Failures are logged, not raised."""
        try:
            data = json.dumps(value).encode("utf-8")
        except (TypeError, ValueError) as e:
            self.logger.error("serializing memory %r (%r): %s", key, value, e)
            return
        try:
            self.store.put(self.package_id, msg.user_id, key, data)
        except Exception:
            self.logger.exception("setting memory %r to %r", key, value)

    def recall(self, msg: IncomingMessage, key: str) -> Memory:
        """Return the stored memory, or an empty one if missing or unreadable."""
        try:
            value = self.store.get(self.package_id, msg.user_id, key)
        except Exception:
            self.logger.exception("reading memory %r", key)
            value = None
        return Memory(key=key, value=value or b"", logger=self.logger)

    def has_memory(self, msg: IncomingMessage, key: str) -> bool:
        return bool(self.recall(msg, key))

    def forget(self, msg: IncomingMessage, key: str) -> None:
        try:
            self.store.delete(self.package_id, msg.user_id, key)
        except Exception:
            self.logger.exception("forgetting memory %r", key)
