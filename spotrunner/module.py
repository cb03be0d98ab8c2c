"""Central DI module for spotrunner.

Binds the configuration for one invocation and provides the lifecycle
components. Combine with ``AWSModule`` for the EC2 client factory.
"""

from __future__ import annotations

from injector import Binder, Module, provider, singleton

from .aws.clients import EC2ClientFactory
from .aws.config import AWS
from .aws.fleet import FleetProvisioner
from .aws.instances import Instances
from .aws.templates import LaunchTemplates
from .config import ProvisioningConfig


class RunnerModule(Module):
    """Module binding per-invocation configuration.

    ``provisioning`` may be omitted when only tearing down.

    Usage:
        injector = Injector([AWSModule(), RunnerModule(aws=AWS(), provisioning=config)])
        provisioner = injector.get(Provisioner)
    """

    def __init__(self, aws: AWS, provisioning: ProvisioningConfig | None = None) -> None:
        self._aws = aws
        self._provisioning = provisioning

    def configure(self, binder: Binder) -> None:
        binder.bind(AWS, to=self._aws)

    @singleton
    @provider
    def provide_launch_templates(self, ec2: EC2ClientFactory) -> LaunchTemplates:
        return LaunchTemplates(ec2, self._provisioning)

    @singleton
    @provider
    def provide_fleet(self, ec2: EC2ClientFactory) -> FleetProvisioner:
        return FleetProvisioner(ec2, self._aws, self._provisioning)

    @singleton
    @provider
    def provide_instances(self, ec2: EC2ClientFactory) -> Instances:
        return Instances(ec2, self._aws)


__all__ = ["RunnerModule"]
