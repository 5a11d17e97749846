"""stepflow hub — routes inbound messages to per-user skill sequencers.

Responsibilities:
1. Receive messages from any connector (IncomingMessage)
2. Lane Queue — serialize per (package, user) so a sequencer never runs concurrently
3. Sequencer management — one sequencer per (package, user), built on first use
4. Response dispatch — return SkillResponse via originating connector
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from stepflow.config import StepflowConfig
from stepflow.connectors.base import IncomingMessage
from stepflow.flow.sequencer import Sequencer
from stepflow.skills.base import SkillResponse

if TYPE_CHECKING:
    from stepflow.connectors.base import Connector
    from stepflow.memory.base import MemoryBackend
    from stepflow.skills.base import Skill

logger = logging.getLogger(__name__)

Lane = tuple[str, str]  # (package, user_id)


class Hub:
    """Core router. Feeds connector messages into skill sequencers."""

    def __init__(self, config: StepflowConfig, store: MemoryBackend) -> None:
        self.config = config
        self.store = store
        self._skills: dict[str, Skill] = {}
        self._connectors: list[Connector] = []
        self._sequencers: dict[Lane, Sequencer] = {}
        self._lane_locks: dict[Lane, asyncio.Lock] = {}

    # ── Skill management ─────────────────────────────────────

    def add_skill(self, skill: Skill) -> None:
        self._skills[skill.name] = skill
        logger.info("Registered skill: %s", skill.name)

    def _get_skill(self, name: str | None = None) -> Skill:
        name = name or self.config.default_skill
        skill = self._skills.get(name)
        if not skill:
            raise RuntimeError(
                f"Skill '{name}' not registered. Available: {list(self._skills)}"
            )
        return skill

    def sequencer_for(self, package: str, user_id: str) -> Sequencer:
        """Return the sequencer for this lane, building it on first use."""
        lane = (package, user_id)
        seq = self._sequencers.get(lane)
        if seq is None:
            skill = self._get_skill(package)
            seq = Sequencer(skill.name, self.store)
            skill.build(seq)
            self._sequencers[lane] = seq
            logger.debug("Built sequencer for %s/%s (%d steps)", package, user_id, len(seq.steps))
        return seq

    # ── Connector management ─────────────────────────────────

    def add_connector(self, connector: Connector) -> None:
        self._connectors.append(connector)
        logger.info("Registered connector: %s", connector.name)

    # ── Lane Queue (per-conversation serialization) ──────────

    def _get_lane_lock(self, lane: Lane) -> asyncio.Lock:
        if lane not in self._lane_locks:
            self._lane_locks[lane] = asyncio.Lock()
        return self._lane_locks[lane]

    # ── Message handling (the core loop) ─────────────────────

    async def handle_message(self, msg: IncomingMessage) -> SkillResponse:
        """Process an incoming message — the main entry point for all connectors."""
        package = self._get_skill(msg.metadata.get("package")).name
        lock = self._get_lane_lock((package, msg.user_id))
        async with lock:
            seq = self.sequencer_for(package, msg.user_id)
            # Steps and the store block; keep them off the event loop
            loop = asyncio.get_running_loop()
            text = await loop.run_in_executor(None, seq.drive, msg)
            return SkillResponse(text=text, package=package, step=seq.index)

    # ── Lifecycle ─────────────────────────────────────────────

    async def start(self) -> None:
        """Start all connectors (each listens for messages)."""
        if not self._skills:
            raise RuntimeError("No skills registered. Call add_skill() first.")

        tasks = [connector.start(self.handle_message) for connector in self._connectors]
        if tasks:
            await asyncio.gather(*tasks)

    async def stop(self) -> None:
        """Gracefully stop all connectors, then release skills and the store."""
        for connector in self._connectors:
            await connector.stop()

        for skill in self._skills.values():
            close = getattr(skill, "close", None)
            if close and callable(close):
                close()

        close = getattr(self.store, "close", None)
        if close and callable(close):
            close()
