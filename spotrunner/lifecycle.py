"""Provisioning lifecycle: start a runner instance, tear everything down.

The caller owns every identifier. ``Provisioner.start`` reports each one
through ``on_output`` as soon as it exists, so a failed start still leaves
the caller with what it needs to run ``Teardown.cleanup``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeAlias

from injector import inject
from loguru import logger

from .aws.fleet import FleetProvisioner
from .aws.instances import Instances
from .aws.templates import LaunchTemplates
from .constants import Output
from .exceptions import FleetError, TeardownError

log = logger.bind(component="lifecycle")

OutputCallback: TypeAlias = Callable[[str, str], None]


def _discard(name: str, value: str) -> None:
    pass


@dataclass(frozen=True, slots=True)
class ProvisionResult:
    label: str
    template_id: str
    fleet_id: str
    instance_id: str


class Provisioner:
    """Creates the launch template, then requests the instance from a fleet.

    Flow:
        create launch template -> on_output(template-id)
        request fleet          -> on_output(fleet-id), on_output(ec2-instance-id)

    Waiting for the instance to run is left to the caller
    (``Instances.wait_running``).
    """

    @inject
    def __init__(self, templates: LaunchTemplates, fleet: FleetProvisioner) -> None:
        self.templates = templates
        self.fleet = fleet

    async def start(
        self,
        label: str,
        token: str,
        on_output: OutputCallback = _discard,
    ) -> ProvisionResult:
        on_output(Output.LABEL, label)

        template_id = await self.templates.create(label, token)
        on_output(Output.TEMPLATE_ID, template_id)

        try:
            result = await self.fleet.request(template_id)
        except FleetError as e:
            if e.fleet_id:
                on_output(Output.FLEET_ID, e.fleet_id)
            raise

        on_output(Output.FLEET_ID, result.fleet_id)
        on_output(Output.INSTANCE_ID, result.instance_id)

        return ProvisionResult(
            label=label,
            template_id=template_id,
            fleet_id=result.fleet_id,
            instance_id=result.instance_id,
        )


class Teardown:
    """Removes everything ``Provisioner.start`` created.

    Order:
        1. terminate the instance (failure aborts the rest)
        2. delete the launch template (best effort)
        3. delete the fleet (best effort)

    Steps 2 and 3 are both attempted once the instance is gone; their
    failures are re-raised afterwards.
    """

    @inject
    def __init__(self, instances: Instances, templates: LaunchTemplates, fleet: FleetProvisioner) -> None:
        self.instances = instances
        self.templates = templates
        self.fleet = fleet

    async def cleanup(
        self,
        instance_id: str | None,
        template_id: str | None,
        fleet_id: str | None,
    ) -> None:
        if instance_id:
            await self.instances.terminate(instance_id)
        else:
            log.info("No instance id, nothing to terminate")

        errors: list[Exception] = []

        try:
            await self.templates.delete(template_id)
        except Exception as e:
            errors.append(e)

        try:
            await self.fleet.delete(fleet_id)
        except Exception as e:
            errors.append(e)

        match errors:
            case []:
                return
            case [error]:
                raise error
            case _:
                raise TeardownError("Teardown left resources behind", errors)
