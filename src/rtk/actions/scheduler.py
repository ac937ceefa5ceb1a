"""Scheduler actions: the job table exposed through the dispatcher."""

from __future__ import annotations

from typing import Any

from rtk.core.result import Result
from rtk.framework.params import ParamType
from rtk.framework.registry import ActionDescriptor, action
from rtk.scheduling.service import SchedulerService

S = ParamType.STRING


class SchedulerActions:
    """Handler group for job management actions.

    Handlers return the service's Results; the dispatcher unwraps an Ok
    and wraps an Err into ``HandlerFailureError``.
    """

    def __init__(self, scheduler: SchedulerService) -> None:
        self.scheduler = scheduler

    def descriptors(self) -> list[ActionDescriptor]:
        return [
            action("addJob", self.add_job, S, S, ParamType.LIST, S, S),
            action("getJobs", self.get_jobs),
            action("removeJob", self.remove_job, S),
            action("runJob", self.run_job, S),
        ]

    def add_job(
        self, name: str, action_name: str, arguments: list[Any], time_type: str, time_argument: str
    ) -> Result[bool]:
        """Schedule an action."""
        return self.scheduler.add_job(name, action_name, arguments, time_type, time_argument).map(lambda _: True)

    def get_jobs(self) -> dict[str, list[Any]]:
        """All scheduled jobs as ``{name: [action, [arguments], time type, time argument]}``."""
        return {view.name: view.to_fields() for view in self.scheduler.list_jobs()}

    def remove_job(self, name: str) -> Result[bool]:
        """Remove a job; unknown names succeed."""
        return self.scheduler.remove_job(name).map(lambda _: True)

    def run_job(self, name: str) -> Result[Any]:
        """Run a job's action now."""
        return self.scheduler.run_job(name)
