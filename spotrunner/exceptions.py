"""Custom exception hierarchy for spotrunner.

All spotrunner-specific exceptions inherit from SpotRunnerError, so a
caller can mark the job failed with a single except clause. Errors raised
by botocore are never wrapped and reach the caller untouched.
"""

from __future__ import annotations

from collections.abc import Sequence


class SpotRunnerError(Exception):
    """Base exception for all spotrunner errors."""


class ConfigurationError(SpotRunnerError):
    """Raised for invalid configuration or missing required inputs."""


class ProvisioningError(SpotRunnerError):
    """Raised when a provisioning step fails."""


class LaunchTemplateError(ProvisioningError):
    """Raised when the launch template could not be created."""


class FleetError(ProvisioningError):
    """Raised when an EC2 Fleet request or deletion fails."""

    def __init__(self, message: str, fleet_id: str | None = None, errors: Sequence[str] = ()) -> None:
        self.fleet_id = fleet_id
        self.errors = tuple(errors)
        detail = f" ({'; '.join(self.errors)})" if self.errors else ""
        super().__init__(f"{message}{detail}")


class InstanceTerminatedError(ProvisioningError):
    """Raised when an instance reached a terminal state while waiting."""

    def __init__(self, instance_id: str, state: str = "unknown") -> None:
        self.instance_id = instance_id
        self.state = state
        super().__init__(f"Instance {instance_id} terminated: {state}")


class WaitTimeoutError(SpotRunnerError, TimeoutError):
    """Raised when a bounded wait exceeds its window."""


class TeardownError(ExceptionGroup):
    """Raised when more than one best-effort teardown step failed."""


class GitHubError(SpotRunnerError):
    """Raised when the GitHub API rejects a request."""
