"""Toolkit wiring: one registry, one dispatcher, one scheduler, one monitor.

The registry is created empty so the scheduler can be built around the
dispatcher first; the scheduler's own actions are then registered
alongside the other handler groups before anything is dispatched.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from rtk.actions import FileActions, PluginActions, PluginCatalog, SchedulerActions
from rtk.core.logging import get_logger
from rtk.core.result import Result
from rtk.core.settings import RtkSettings, get_settings
from rtk.framework import ActionDispatcher, ActionRegistry
from rtk.monitor import PingMonitor
from rtk.scheduling import JobRepository, SchedulerService, ThreadSchedulerBackend, connect

logger = get_logger(__name__)


@dataclass
class Toolkit:
    """Every long-lived component, wired together."""

    settings: RtkSettings
    registry: ActionRegistry
    dispatcher: ActionDispatcher
    scheduler: SchedulerService
    monitor: PingMonitor
    catalog: PluginCatalog

    def start(self) -> Result[None]:
        """Start the scheduler, the liveness monitor and a catalog refresh."""
        self.scheduler.start()
        self.catalog.refresh_in_background()
        started = self.monitor.startup()
        logger.info(
            "toolkit.started",
            actions=len(self.registry),
            jobs=len(self.scheduler.list_jobs()),
            monitor_running=self.monitor.is_running,
        )
        return started

    def stop(self) -> None:
        self.monitor.shutdown()
        self.scheduler.stop()
        logger.info("toolkit.stopped")

    def health(self) -> dict:
        return {
            "scheduler": self.scheduler.health().to_dict(),
            "monitor": self.monitor.health(),
            "dispatch": vars(self.dispatcher.get_stats()),
            "plugins": len(self.catalog.plugins()),
        }


def build_toolkit(
    settings: RtkSettings | None = None,
    *,
    connection: sqlite3.Connection | None = None,
) -> Toolkit:
    """Build a fully wired toolkit from settings.

    Args:
        settings: Defaults to the cached environment settings
        connection: Job store; defaults to ``settings.jobs_db_path``

    Raises:
        NameCollisionError: if two handler groups claim the same name
        InvalidConfigError: if the monitor timings are inconsistent
    """
    settings = settings or get_settings()

    registry = ActionRegistry()
    dispatcher = ActionDispatcher(registry)
    scheduler = SchedulerService(
        dispatcher,
        backend=ThreadSchedulerBackend(),
        repository=JobRepository(connection if connection is not None else connect(settings.jobs_db_path)),
        interval_seconds=settings.scheduler_interval_seconds,
        max_workers=settings.scheduler_max_workers,
        tz=settings.tzinfo,
    )
    catalog = PluginCatalog(settings.plugin_catalog_url, timeout=settings.http_timeout_seconds)

    registry.register_all(
        FileActions(timeout=settings.http_timeout_seconds).descriptors()
        + PluginActions(catalog).descriptors()
        + SchedulerActions(scheduler).descriptors()
    )

    monitor = PingMonitor(
        settings.ping_host,
        settings.ping_port,
        request_threshold=settings.request_threshold_seconds,
        sleep_time=settings.sleep_time_seconds,
    )

    return Toolkit(
        settings=settings,
        registry=registry,
        dispatcher=dispatcher,
        scheduler=scheduler,
        monitor=monitor,
        catalog=catalog,
    )
