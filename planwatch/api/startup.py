"""API startup and shutdown.

The lifespan builds the long-lived components, wires them together and tears
them down in reverse order:

    FileWatcher -> ChangeChannel -> ChangeDispatcher -> caches + BroadcastHub
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastapi import FastAPI

from planwatch.api.config import APIConfig
from planwatch.api.services import (
    BroadcastHub,
    ChangeDispatcher,
    HookService,
    PlanService,
    SessionService,
)
from planwatch.logging import get_logger
from planwatch.watcher import ChangeChannel, FileWatcher

logger = get_logger(__name__)


@dataclass
class AppServices:
    """Components shared by every request of one application instance."""

    config: APIConfig
    channel: ChangeChannel
    watcher: FileWatcher
    hub: BroadcastHub
    plan_service: PlanService
    session_service: SessionService
    hook_service: HookService
    dispatcher: ChangeDispatcher


def build_services(config: APIConfig) -> AppServices:
    """Construct and wire the components without starting anything."""
    claude_dir = config.paths.claude_dir
    plan_dir = config.paths.plan_dir

    channel = ChangeChannel()
    hub = BroadcastHub(keepalive_seconds=config.live.keepalive_seconds)
    plan_service = PlanService(plan_dir)
    session_service = SessionService(claude_dir, config.live)
    hook_service = HookService(claude_dir, plan_service, config.hooks)

    return AppServices(
        config=config,
        channel=channel,
        watcher=FileWatcher(claude_dir, plan_dir, channel, config.watcher),
        hub=hub,
        plan_service=plan_service,
        session_service=session_service,
        hook_service=hook_service,
        dispatcher=ChangeDispatcher(channel, hub, plan_service, session_service),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the dispatcher and the watcher; stop everything on shutdown."""
    config: APIConfig = app.state.config
    services = build_services(config)
    app.state.services = services

    logger.info(
        f"Starting planwatch: claude_dir={config.paths.claude_dir} "
        f"plan_dir={config.paths.plan_dir or '-'}"
    )
    services.dispatcher.start()
    services.watcher.start()

    try:
        yield
    finally:
        logger.info("Shutting down planwatch")
        await services.watcher.stop()
        await services.dispatcher.stop()
        services.hub.close()
