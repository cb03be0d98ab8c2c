"""AWS provider configuration.

Immutable configuration that defines how to reach EC2 and how long the
provisioning steps may wait.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, TypeAlias

from ..constants import INSTANCE_RUNNING_POLL_INTERVAL, INSTANCE_RUNNING_TIMEOUT

AllocationStrategy: TypeAlias = Literal[
    "price-capacity-optimized",  # Default: balance price and capacity
    "capacity-optimized",  # Prioritize available capacity
    "lowest-price",  # Cheapest (more interruptions)
]


@dataclass(frozen=True, slots=True)
class AWS:
    """AWS provider configuration.

    Example:
        >>> from spotrunner.aws import AWS
        >>> config = AWS(region="us-west-2")

    Args:
        region: AWS region. If None, the SDK default chain decides.
        instance_timeout: Maximum seconds to wait for the instance to run. Default: 300.
        poll_interval: Seconds between instance state polls.
        allocation_strategy: EC2 Fleet spot allocation strategy.
    """

    region: str | None = None
    instance_timeout: int = INSTANCE_RUNNING_TIMEOUT
    poll_interval: float = INSTANCE_RUNNING_POLL_INTERVAL
    allocation_strategy: AllocationStrategy = "price-capacity-optimized"
