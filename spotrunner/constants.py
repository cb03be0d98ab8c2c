"""Centralized constants and enums for spotrunner.

All magic strings, paths, and provisioning constants live here so the
bootstrap script, the EC2 calls and the CLI agree on them.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final

# =============================================================================
# AWS Resource Tags
# =============================================================================


class RunnerTag(StrEnum):
    """AWS resource tag keys used by spotrunner."""

    MANAGED = "spotrunner:managed"
    LABEL = "spotrunner:label"


# =============================================================================
# EC2 Instance States
# =============================================================================


class InstanceState(StrEnum):
    """EC2 instance states the running-wait reacts to."""

    RUNNING = "running"
    SHUTTING_DOWN = "shutting-down"
    TERMINATED = "terminated"


TERMINAL_STATES: Final = frozenset({InstanceState.SHUTTING_DOWN, InstanceState.TERMINATED})


# =============================================================================
# EC2 Fleet
# =============================================================================

FLEET_TYPE: Final = "instant"
FLEET_TARGET_CAPACITY: Final = 1
FLEET_CAPACITY_TYPE: Final = "spot"
LAUNCH_TEMPLATE_VERSION: Final = "$Latest"


# =============================================================================
# Runner Bootstrap
# =============================================================================

RUNNER_VERSION: Final = "2.313.0"
RUNNER_DOWNLOAD_URL: Final = "https://github.com/actions/runner/releases/download"
RUNNER_DIR: Final = "actions-runner"
PRE_RUNNER_SCRIPT: Final = "pre-runner-script.sh"
USER_DATA_LOG: Final = "/var/log/user-data.log"

# Timeouts (in seconds)
INSTANCE_RUNNING_TIMEOUT: Final = 300
INSTANCE_RUNNING_POLL_INTERVAL: Final = 5.0


# =============================================================================
# GitHub
# =============================================================================

GITHUB_API_URL: Final = "https://api.github.com"
GITHUB_SERVER_URL: Final = "https://github.com"
GITHUB_API_VERSION: Final = "2022-11-28"


# =============================================================================
# Job Outputs
# =============================================================================


class Output(StrEnum):
    """Names of the identifiers reported back to the job."""

    LABEL = "label"
    TEMPLATE_ID = "template-id"
    FLEET_ID = "fleet-id"
    INSTANCE_ID = "ec2-instance-id"
