"""EC2 Fleet management for launching the runner instance."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from loguru import logger

from ..config import ProvisioningConfig
from ..constants import (
    FLEET_CAPACITY_TYPE,
    FLEET_TARGET_CAPACITY,
    FLEET_TYPE,
    LAUNCH_TEMPLATE_VERSION,
)
from ..exceptions import ConfigurationError, FleetError
from .clients import EC2ClientFactory
from .config import AWS

log = logger.bind(component="fleet")


@dataclass(frozen=True, slots=True)
class FleetResult:
    fleet_id: str
    instance_id: str


def overrides(config: ProvisioningConfig) -> list[dict[str, str]]:
    """One override per (instance type, subnet) pair, types outermost."""
    return [
        {"InstanceType": instance_type, "SubnetId": subnet_id}
        for instance_type, subnet_id in config.placements
    ]


def _errors(response: dict[str, Any]) -> list[str]:
    return [
        f"{e.get('ErrorCode', 'Unknown')}: {e.get('ErrorMessage', '')}"
        for e in response.get("Errors", [])
    ]


class FleetProvisioner:
    """Requests one spot instance through an ``instant`` EC2 Fleet.

    ``instant`` fleets either launch synchronously or fail; nothing stays
    pending and nothing is retried.
    """

    def __init__(
        self,
        ec2: EC2ClientFactory,
        aws: AWS,
        config: ProvisioningConfig | None = None,
    ) -> None:
        self.ec2 = ec2
        self.aws = aws
        self.config = config

    def fleet_request(self, template_id: str) -> dict[str, Any]:
        """Build the ``CreateFleet`` arguments for a launch template."""
        if self.config is None:
            raise ConfigurationError("Provisioning configuration is required to request a fleet")

        return {
            "Type": FLEET_TYPE,
            "LaunchTemplateConfigs": [
                {
                    "LaunchTemplateSpecification": {
                        "LaunchTemplateId": template_id,
                        "Version": LAUNCH_TEMPLATE_VERSION,
                    },
                    "Overrides": overrides(self.config),
                }
            ],
            "TargetCapacitySpecification": {
                "TotalTargetCapacity": FLEET_TARGET_CAPACITY,
                "DefaultTargetCapacityType": FLEET_CAPACITY_TYPE,
            },
            "SpotOptions": {"AllocationStrategy": self.aws.allocation_strategy},
        }

    async def request(self, template_id: str) -> FleetResult:
        """Launch the instance and return the fleet and instance ids.

        Raises:
            FleetError: If the fleet launched no instance. ``fleet_id`` is
                set when the provider created the fleet anyway.
        """
        kwargs = self.fleet_request(template_id)

        async with self.ec2() as ec2:
            try:
                response = await ec2.create_fleet(**kwargs)
            except Exception:
                log.error("EC2 Fleet request failed for launch template {template_id}", template_id=template_id)
                raise

        fleet_id = response.get("FleetId")
        instance_ids: list[str] = []
        for instance_set in response.get("Instances", []):
            instance_ids.extend(instance_set.get("InstanceIds", []))

        if not instance_ids:
            errors = _errors(response)
            log.error("EC2 Fleet {fleet_id} launched no instance", fleet_id=fleet_id)
            raise FleetError(f"EC2 Fleet {fleet_id} launched no instance", fleet_id=fleet_id, errors=errors)

        instance_id = instance_ids[0]
        if not fleet_id:
            raise FleetError(f"EC2 Fleet returned instance {instance_id} without a fleet id")

        log.info("EC2 instance {instance_id} is started (fleet {fleet_id})", instance_id=instance_id, fleet_id=fleet_id)
        return FleetResult(fleet_id=fleet_id, instance_id=instance_id)

    async def delete(self, fleet_id: str | None) -> None:
        """Delete a fleet. A missing id is a no-op.

        Instant fleets can only be deleted together with their instances,
        so ``TerminateInstances`` is always set.
        """
        if not fleet_id:
            log.info("No fleet id, nothing to delete")
            return

        async with self.ec2() as ec2:
            try:
                response = await ec2.delete_fleets(FleetIds=[fleet_id], TerminateInstances=True)
            except Exception:
                log.error("Failed to delete EC2 Fleet {fleet_id}", fleet_id=fleet_id)
                raise

        failures = response.get("UnsuccessfulFleetDeletions", [])
        if failures:
            errors = [
                f"{f.get('Error', {}).get('Code', 'Unknown')}: {f.get('Error', {}).get('Message', '')}"
                for f in failures
            ]
            log.error("EC2 Fleet {fleet_id} was not deleted", fleet_id=fleet_id)
            raise FleetError(f"Failed to delete EC2 Fleet {fleet_id}", fleet_id=fleet_id, errors=errors)

        log.info("Deleted EC2 Fleet {fleet_id}", fleet_id=fleet_id)
