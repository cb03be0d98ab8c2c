"""Provisioning configuration.

Immutable configuration supplied by the caller for one runner. Nothing in
the core reads job inputs from the environment; the CLI builds this object
and passes it in explicitly.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from .exceptions import ConfigurationError

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def split_list(value: str | None) -> tuple[str, ...]:
    """Split a comma-separated input into a tuple of non-empty items."""
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def parse_bool(value: str | None) -> bool:
    return (value or "").strip().lower() in _TRUTHY


@dataclass(frozen=True, slots=True)
class ProvisioningConfig:
    """Configuration for one ephemeral runner instance.

    Example:
        >>> config = ProvisioningConfig(
        ...     image_id="ami-123",
        ...     instance_types=("t3.micro", "t3.small"),
        ...     subnet_ids=("subnet-a", "subnet-b"),
        ...     security_group_id="sg-1",
        ...     iam_role_name="runner-role",
        ...     repository_url="https://github.com/acme/app",
        ... )

    Args:
        image_id: AMI used to boot the instance.
        instance_types: Candidate instance types. Must not be empty.
        subnet_ids: Candidate subnets. Must not be empty.
        security_group_id: Security group attached to the instance.
        iam_role_name: IAM instance profile name.
        repository_url: Repository URL the runner registers against.
        runner_home_dir: Directory with a pre-installed runner. If None, the
            runner release is downloaded at boot.
        pre_runner_script: Shell snippet sourced before registration.
        run_as_user: User that owns and runs the runner.
        run_as_service: Install the runner as a system service instead of
            running it in the foreground.
    """

    image_id: str
    instance_types: tuple[str, ...]
    subnet_ids: tuple[str, ...]
    security_group_id: str
    iam_role_name: str
    repository_url: str
    runner_home_dir: str | None = None
    pre_runner_script: str = ""
    run_as_user: str | None = None
    run_as_service: bool = False

    def __post_init__(self) -> None:
        if not self.instance_types:
            raise ConfigurationError("At least one instance type is required")
        if not self.subnet_ids:
            raise ConfigurationError("At least one subnet id is required")

    @property
    def placements(self) -> tuple[tuple[str, str], ...]:
        """Every (instance type, subnet) pair the fleet may launch into."""
        return tuple(
            (instance_type, subnet_id)
            for instance_type in self.instance_types
            for subnet_id in self.subnet_ids
        )

    @classmethod
    def from_inputs(cls, inputs: Mapping[str, str], repository_url: str) -> ProvisioningConfig:
        """Build from action-style string inputs.

        Keys use the action input names (``ec2-image-id``, ``ec2-instance-type``,
        ``subnet-id``, ...). List inputs are comma-separated.
        """
        missing = [
            name
            for name in ("ec2-image-id", "ec2-instance-type", "subnet-id", "security-group-id", "iam-role-name")
            if not inputs.get(name)
        ]
        if missing:
            raise ConfigurationError(f"Missing required inputs: {', '.join(missing)}")

        return cls(
            image_id=inputs["ec2-image-id"],
            instance_types=split_list(inputs["ec2-instance-type"]),
            subnet_ids=split_list(inputs["subnet-id"]),
            security_group_id=inputs["security-group-id"],
            iam_role_name=inputs["iam-role-name"],
            repository_url=repository_url,
            runner_home_dir=inputs.get("runner-home-dir") or None,
            pre_runner_script=inputs.get("pre-runner-script", ""),
            run_as_user=inputs.get("run-as-user") or None,
            run_as_service=parse_bool(inputs.get("run-as-service")),
        )
