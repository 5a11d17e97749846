"""Entry point: python -m stepflow [chat|init-db]

- No args / "chat": Interactive CLI REPL running the default skill
- "init-db":        Create the memory table and exit
"""

from __future__ import annotations

import asyncio
import logging
import sys

from stepflow.config import StepflowConfig, load_config

logger = logging.getLogger(__name__)


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _build_hub(config: StepflowConfig):
    from stepflow.core import Hub
    from stepflow.memory.store import MemoryStore
    from stepflow.search.client import SearchClient
    from stepflow.skills.shopping import ShoppingSkill

    store = MemoryStore(config.database.url, echo=config.database.echo)
    store.create_schema()

    search = None
    if config.search.enabled:
        search = SearchClient(config.search)
    else:
        logger.info("No search domain configured; shopping runs without product lookup")

    hub = Hub(config, store)
    hub.add_skill(ShoppingSkill(search))
    return hub


def _run_cli() -> None:
    """Interactive CLI REPL mode."""
    config = load_config()
    _setup_logging(config.log_level)

    from stepflow.connectors.cli import CLIConnector

    hub = _build_hub(config)
    hub.add_connector(CLIConnector(package=config.default_skill))

    async def _main() -> None:
        try:
            await hub.start()
        finally:
            await hub.stop()

    try:
        asyncio.run(_main())
    except KeyboardInterrupt:
        pass


def _run_init_db() -> None:
    config = load_config()
    _setup_logging(config.log_level)

    from stepflow.memory.store import MemoryStore

    store = MemoryStore(config.database.url, echo=config.database.echo)
    try:
        store.create_schema()
    finally:
        store.close()


def main() -> None:
    cmd = sys.argv[1] if len(sys.argv) > 1 else "chat"

    if cmd in ("chat", "repl"):
        _run_cli()
    elif cmd == "init-db":
        _run_init_db()
    else:
        print("Usage: python -m stepflow [chat|init-db]")
        print("  chat     — Interactive CLI REPL (default)")
        print("  init-db  — Create the memory table")
        sys.exit(1)


if __name__ == "__main__":
    main()
