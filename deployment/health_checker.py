"""
Environment health polling.

Watches a freshly created Elastic Beanstalk environment until it reports
``Ready``/``Ok``, echoing status, health and event changes to the operator
as they arrive. The loop is bounded by an optional timeout and can be
interrupted through a ``threading.Event``.
"""

import threading
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import click
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel, Field

from core.logging import get_logger

logger = get_logger(__name__, stage="health")

READY_STATUS = "Ready"
OK_HEALTH = "Ok"
FETCH_ERROR = "Could not check health of environment. Are you sure it exists?"


class PollState(str, Enum):
    """Observable states of the polling loop."""

    PENDING = "pending"
    HEALTHY = "healthy"
    ERROR = "error"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


class HealthPollResult(BaseModel):
    """Outcome of one polling run."""

    state: PollState = Field(..., description="Terminal state of the loop")
    status: Optional[str] = Field(None, description="Last environment status seen")
    health: Optional[str] = Field(None, description="Last environment health status seen")
    polls: int = Field(default=0, description="Number of successful status fetches")
    duration_seconds: float = Field(default=0.0)
    error: str = Field(default="", description="Error message if polling failed")

    @property
    def healthy(self) -> bool:
        return self.state == PollState.HEALTHY


def is_healthy(environment: Optional[Dict[str, Any]]) -> bool:
    """Only Ready status with Ok health counts as healthy."""
    if not environment:
        return False
    return environment.get("Status") == READY_STATUS and environment.get("HealthStatus") == OK_HEALTH


class EnvironmentHealthPoller:
    """Fixed-delay poller for a single environment."""

    def __init__(
        self,
        eb_client: Any,
        environment_name: str,
        interval: float = 5.0,
        timeout: Optional[float] = None,
        report: Callable[[str], None] = click.echo,
        cancel_event: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.eb_client = eb_client
        self.environment_name = environment_name
        self.interval = interval
        self.timeout = timeout or None
        self.report = report
        self.cancel_event = cancel_event or threading.Event()
        self.clock = clock
        self.now = now

    def cancel(self) -> None:
        """Stop the loop at its next check or during its current wait."""
        self.cancel_event.set()

    def poll(self) -> HealthPollResult:
        """Poll until healthy, failed, timed out or cancelled."""
        started = self.clock()
        window_start = self.now()
        status: Optional[str] = None
        health: Optional[str] = None
        polls = 0

        def finish(state: PollState, error: str = "") -> HealthPollResult:
            result = HealthPollResult(
                state=state,
                status=status,
                health=health,
                polls=polls,
                duration_seconds=round(self.clock() - started, 2),
                error=error,
            )
            logger.info(f"Health polling for {self.environment_name} ended: {state.value}")
            return result

        while True:
            if self.cancel_event.is_set():
                return finish(PollState.CANCELLED)

            remaining = self._remaining(started)
            if remaining is not None and remaining <= 0:
                self.report(f"Environment did not become healthy within {self.timeout:g} seconds.")
                return finish(PollState.TIMED_OUT)

            environment = self._fetch_environment()
            if environment is False:
                self.report(FETCH_ERROR)
                return finish(PollState.ERROR, FETCH_ERROR)
            polls += 1

            window_end = self.now()
            events = self._fetch_events(window_start, window_end)

            if is_healthy(environment):
                status, health = environment.get("Status"), environment.get("HealthStatus")
                self.report("Healthy!")
                return finish(PollState.HEALTHY)

            if environment:
                current_status = environment.get("Status")
                current_health = environment.get("HealthStatus")
                if current_status != status:
                    self.report(f"Status: {current_status}")
                    status = current_status
                if current_health != health:
                    self.report(f"Health: {current_health}")
                    health = current_health

            for event in events:
                self.report(event.get("Message", ""))

            window_start = window_end

            delay = self.interval
            remaining = self._remaining(started)
            if remaining is not None:
                delay = max(0.0, min(delay, remaining))
            if self.cancel_event.wait(delay):
                return finish(PollState.CANCELLED)

    def _remaining(self, started: float) -> Optional[float]:
        if self.timeout is None:
            return None
        return self.timeout - (self.clock() - started)

    def _fetch_environment(self):
        """Return the environment dict, None when not listed yet, False when the call failed."""
        try:
            response = self.eb_client.describe_environments(
                EnvironmentNames=[self.environment_name],
                IncludeDeleted=False,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"describe_environments failed for {self.environment_name}: {e}")
            return False

        if not response:
            return False

        environments = response.get("Environments") or []
        return environments[0] if environments else None

    def _fetch_events(self, start: datetime, end: datetime) -> List[Dict[str, Any]]:
        """Events inside the window, oldest first. Failures only cost the event lines."""
        try:
            response = self.eb_client.describe_events(
                EnvironmentName=self.environment_name,
                StartTime=start,
                EndTime=end,
            )
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"describe_events failed for {self.environment_name}: {e}")
            return []

        events = (response or {}).get("Events") or []
        return sorted(events, key=lambda event: event.get("EventDate") or end)
