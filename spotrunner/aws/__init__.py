"""AWS EC2 layer for spotrunner.

Example:
    from injector import Injector
    from spotrunner.aws import AWS, AWSModule, EC2ClientFactory

    injector = Injector([AWSModule()])
    injector.binder.bind(AWS, to=AWS(region="us-east-1"))
    ec2 = injector.get(EC2ClientFactory)
"""

from .clients import AWSModule, EC2ClientFactory
from .config import AWS, AllocationStrategy
from .fleet import FleetProvisioner, FleetResult, overrides
from .instances import Instances
from .templates import LaunchTemplates

__all__ = [
    "AWS",
    "AWSModule",
    "AllocationStrategy",
    "EC2ClientFactory",
    "FleetProvisioner",
    "FleetResult",
    "Instances",
    "LaunchTemplates",
    "overrides",
]
