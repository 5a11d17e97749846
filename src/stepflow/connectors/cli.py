"""Local CLI REPL connector for development and testing."""

from __future__ import annotations

import asyncio
import getpass
import logging
import sys
from typing import TYPE_CHECKING

from stepflow.connectors.base import IncomingMessage

if TYPE_CHECKING:
    from stepflow.connectors.base import MessageHandler
    from stepflow.skills.base import SkillResponse

logger = logging.getLogger(__name__)

_CLI_CHAT_ID = "cli"
_QUIT_WORDS = ("exit", "quit")


class CLIConnector:
    """Interactive REPL connector — reads from stdin, writes to stdout."""

    def __init__(self, user_id: str | None = None, package: str | None = None) -> None:
        self._running = False
        self._user_id = user_id or getpass.getuser()
        self._package = package

    @property
    def name(self) -> str:
        return "cli"

    async def start(self, handler: MessageHandler) -> None:
        self._running = True
        loop = asyncio.get_running_loop()

        skill = self._package or "default skill"
        print(f"stepflow: {skill} as {self._user_id}. Empty lines are ignored; 'exit' quits.")

        while self._running:
            try:
                line = await loop.run_in_executor(None, self._read_input)
            except (EOFError, KeyboardInterrupt):
                line = None

            if line is None or line.strip().lower() in _QUIT_WORDS:
                print("\nBye!")
                break

            text = line.strip()
            if text:
                response = await handler(self._to_message(text))
                await self.reply(_CLI_CHAT_ID, response)

    def _to_message(self, text: str) -> IncomingMessage:
        return IncomingMessage(
            text=text,
            user_id=self._user_id,
            chat_id=_CLI_CHAT_ID,
            sender=self._user_id,
            connector_name=self.name,
            metadata={"package": self._package} if self._package else {},
        )

    def _read_input(self) -> str | None:
        sys.stdout.write(f"\n{self._user_id}> ")
        sys.stdout.flush()
        raw = sys.stdin.buffer.readline()
        if not raw:
            return None
        return raw.decode("utf-8", errors="replace").rstrip("\n")

    async def stop(self) -> None:
        self._running = False

    async def reply(self, chat_id: str, response: SkillResponse) -> None:
        # Empty text means the step consumed the input without a new prompt
        if not response.text:
            logger.debug("No prompt from %s (step %d)", response.package, response.step)
            print("  (noted)")
            return
        print(f"\n{response.package}: {response.text}")
