"""FastAPI application bootstrap for an instance taking part in the election."""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from .clock import format_instant
from .container import (
    LeaseContainer,
    build_container,
    shutdown as shutdown_container,
    startup as startup_container,
)
from .env import load_dotenv_if_present
from .errors import StoreUnavailable
from .startup_checks import run_startup_checks

logger = logging.getLogger(__name__)


class _InstanceIdFilter(logging.Filter):
    """Ensure every log record has an instance_id attribute."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "instance_id"):
            record.instance_id = "system"
        return True


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [instance=%(instance_id)s] %(name)s: %(message)s",
    )
    root_logger = logging.getLogger()
    instance_filter = _InstanceIdFilter()
    for handler in root_logger.handlers:
        handler.addFilter(instance_filter)


class LeaderStatus(BaseModel):
    instance_id: str
    is_leader: bool
    owner: str | None = None
    last_checkin: str | None = None
    last_decision: str | None = None


def create_app(container: LeaseContainer | None = None) -> FastAPI:
    """Construct the FastAPI application."""
    configure_logging()
    if container is None:
        load_dotenv_if_present()
        container = build_container()

    app = FastAPI()
    app.state.container = container

    @app.on_event("startup")
    async def _startup() -> None:
        await run_startup_checks(container.settings)
        startup_container(container, immediate=False)
        # Settle this instance's role before serving requests.
        await container.monitor.tick()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await shutdown_container(container)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/leader", response_model=LeaderStatus)
    async def leader() -> LeaderStatus:
        try:
            last_checkin = await container.lease_store.get_last_checkin()
        except StoreUnavailable as exc:
            logger.warning("leader status unavailable: %s", exc)
            raise HTTPException(status_code=503, detail="settings store unavailable") from exc
        decision = container.monitor.last_decision
        return LeaderStatus(
            instance_id=container.instance_id,
            is_leader=container.oracle.am_i_leader(),
            owner=container.oracle.known_owner,
            last_checkin=format_instant(last_checkin) if last_checkin else None,
            last_decision=decision.value if decision else None,
        )

    return app


_APP: FastAPI | None = None


def get_app() -> FastAPI:
    """Accessor for ASGI servers expecting an `app` variable."""

    global _APP
    if _APP is None:
        _APP = create_app()
    return _APP


def __getattr__(name: str):  # pragma: no cover
    if name == "app":
        return get_app()
    raise AttributeError(name)
