from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager
from typing import Any

import pytest
from botocore.exceptions import ClientError
from loguru import logger

from spotrunner.aws import AWS, EC2ClientFactory
from spotrunner.config import ProvisioningConfig

NOT_FOUND = "<not-found>"


def client_error(code: str, operation: str = "Operation") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": f"{code} raised"}}, operation)


class FakeEC2:
    """In-memory stand-in for the aioboto3 EC2 client.

    ``responses`` holds the canned reply per operation, ``failures`` an
    exception to raise instead. ``states`` is consumed by describe_instances
    one poll at a time; the last state repeats.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.failures: dict[str, Exception] = {}
        self.states: list[str] = ["running"]
        self.responses: dict[str, dict[str, Any]] = {
            "create_launch_template": {
                "LaunchTemplate": {"LaunchTemplateId": "lt-123", "LaunchTemplateName": "name"},
            },
            "delete_launch_template": {},
            "create_fleet": {
                "FleetId": "fleet-123",
                "Instances": [{"InstanceIds": ["i-123"], "InstanceType": "t3.micro"}],
                "Errors": [],
            },
            "delete_fleets": {
                "SuccessfulFleetDeletions": [{"FleetId": "fleet-123"}],
                "UnsuccessfulFleetDeletions": [],
            },
            "terminate_instances": {},
        }

    async def _call(self, name: str, kwargs: dict[str, Any]) -> dict[str, Any]:
        self.calls.append((name, kwargs))
        if name in self.failures:
            raise self.failures[name]
        return self.responses[name]

    def called(self, name: str) -> list[dict[str, Any]]:
        return [kwargs for op, kwargs in self.calls if op == name]

    @property
    def operations(self) -> list[str]:
        return [op for op, _ in self.calls]

    async def create_launch_template(self, **kwargs: Any) -> dict[str, Any]:
        return await self._call("create_launch_template", kwargs)

    async def delete_launch_template(self, **kwargs: Any) -> dict[str, Any]:
        return await self._call("delete_launch_template", kwargs)

    async def create_fleet(self, **kwargs: Any) -> dict[str, Any]:
        return await self._call("create_fleet", kwargs)

    async def delete_fleets(self, **kwargs: Any) -> dict[str, Any]:
        return await self._call("delete_fleets", kwargs)

    async def terminate_instances(self, **kwargs: Any) -> dict[str, Any]:
        return await self._call("terminate_instances", kwargs)

    async def describe_instances(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("describe_instances", kwargs))
        if "describe_instances" in self.failures:
            raise self.failures["describe_instances"]

        state = self.states.pop(0) if len(self.states) > 1 else self.states[0]
        if state == NOT_FOUND:
            raise client_error("InvalidInstanceID.NotFound", "DescribeInstances")

        return {
            "Reservations": [
                {
                    "Instances": [
                        {"InstanceId": instance_id, "State": {"Name": state}}
                        for instance_id in kwargs["InstanceIds"]
                    ]
                }
            ]
        }


@pytest.fixture
def fake_ec2() -> FakeEC2:
    return FakeEC2()


@pytest.fixture
def ec2(fake_ec2: FakeEC2) -> EC2ClientFactory:
    @asynccontextmanager
    async def factory() -> AsyncIterator[FakeEC2]:
        yield fake_ec2

    return EC2ClientFactory(factory)


@pytest.fixture
def aws() -> AWS:
    return AWS(region="us-east-1", instance_timeout=5, poll_interval=0)


@pytest.fixture
def config() -> ProvisioningConfig:
    return ProvisioningConfig(
        image_id="ami-123",
        instance_types=("t3.micro", "t3.small"),
        subnet_ids=("subnet-a", "subnet-b"),
        security_group_id="sg-123",
        iam_role_name="runner-profile",
        repository_url="https://github.com/acme/app",
    )


@pytest.fixture
def log_records() -> Iterator[list[dict[str, Any]]]:
    """Capture spotrunner log records emitted during the test."""
    records: list[dict[str, Any]] = []
    logger.enable("spotrunner")
    hid = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(hid)
    logger.disable("spotrunner")


def messages(records: list[dict[str, Any]], level: str = "INFO") -> list[str]:
    return [r["message"] for r in records if r["level"].name == level]
