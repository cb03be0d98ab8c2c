"""Instance lifecycle: wait until running, terminate."""

from __future__ import annotations

from botocore.exceptions import ClientError
from loguru import logger

from ..constants import TERMINAL_STATES, InstanceState
from ..exceptions import InstanceTerminatedError
from ..wait import wait_for_ready
from .clients import EC2ClientFactory
from .config import AWS

log = logger.bind(component="instance")


class Instances:
    def __init__(self, ec2: EC2ClientFactory, aws: AWS) -> None:
        self.ec2 = ec2
        self.aws = aws

    async def state(self, instance_id: str) -> str | None:
        """Current state name, or None while the instance is not visible yet."""
        async with self.ec2() as ec2:
            try:
                response = await ec2.describe_instances(InstanceIds=[instance_id])
            except ClientError as e:
                # AWS eventual consistency - instance may not be visible yet
                if e.response.get("Error", {}).get("Code") == "InvalidInstanceID.NotFound":
                    log.debug("Instance {instance_id} not found yet", instance_id=instance_id)
                    return None
                raise

        for reservation in response.get("Reservations", []):
            for instance in reservation.get("Instances", []):
                return instance["State"]["Name"]
        return None

    async def wait_running(self, instance_id: str) -> None:
        """Block until the instance is running.

        Raises:
            WaitTimeoutError: If the instance is not running within
                ``AWS.instance_timeout`` seconds.
            InstanceTerminatedError: If the instance is shutting down or gone.
        """
        log.info("Checking for instance {instance_id} to be up and running", instance_id=instance_id)

        async def poll() -> str | None:
            state = await self.state(instance_id)
            if state in TERMINAL_STATES:
                raise InstanceTerminatedError(instance_id, state)
            return state

        try:
            await wait_for_ready(
                poll_fn=poll,
                ready_check=lambda state: state == InstanceState.RUNNING,
                timeout=self.aws.instance_timeout,
                interval=self.aws.poll_interval,
                description=f"EC2 instance {instance_id}",
            )
        except Exception:
            log.error("EC2 instance {instance_id} initialization error", instance_id=instance_id)
            raise

        log.info("EC2 instance {instance_id} is up and running", instance_id=instance_id)

    async def terminate(self, instance_id: str) -> None:
        async with self.ec2() as ec2:
            try:
                await ec2.terminate_instances(InstanceIds=[instance_id])
            except Exception:
                log.error("EC2 instance {instance_id} termination error", instance_id=instance_id)
                raise

        log.info("EC2 instance {instance_id} is terminated", instance_id=instance_id)
