"""Headless process that only takes part in the instance election.

Useful for deployments where the chat integration runs outside the web
process: the worker keeps its lease status current until interrupted.
"""

from __future__ import annotations

import asyncio
import logging

from .config import get_settings
from .container import (
    build_container,
    shutdown as shutdown_container,
    startup as startup_container,
)
from .env import load_dotenv_if_present
from .main import configure_logging
from .startup_checks import run_startup_checks

logger = logging.getLogger(__name__)


async def run_worker() -> None:
    load_dotenv_if_present()
    settings = get_settings()
    await run_startup_checks(settings)

    container = build_container(settings=settings)
    logger.info(
        "election worker started backend=%s",
        settings.backend,
        extra={"instance_id": container.instance_id},
    )
    startup_container(container)
    try:
        # All work happens in the monitor task; keep the process alive.
        await asyncio.Event().wait()
    finally:
        await shutdown_container(container)


def main() -> None:
    configure_logging()
    try:
        asyncio.run(run_worker())
    except KeyboardInterrupt:
        logger.info("election worker interrupted")


if __name__ == "__main__":  # pragma: no cover
    main()
