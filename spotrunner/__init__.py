"""spotrunner: ephemeral EC2 spot instances as GitHub Actions runners.

Example:
    from injector import Injector
    from spotrunner import AWS, AWSModule, Provisioner, ProvisioningConfig, RunnerModule

    injector = Injector([AWSModule(), RunnerModule(aws=AWS(), provisioning=config)])
    result = await injector.get(Provisioner).start(label, token)
"""

from .aws import AWS, AWSModule, EC2ClientFactory, FleetProvisioner, FleetResult, Instances, LaunchTemplates
from .bootstrap import user_data
from .config import ProvisioningConfig
from .exceptions import (
    ConfigurationError,
    FleetError,
    GitHubError,
    InstanceTerminatedError,
    LaunchTemplateError,
    ProvisioningError,
    SpotRunnerError,
    TeardownError,
    WaitTimeoutError,
)
from .github import GitHub, GitHubConfig
from .lifecycle import ProvisionResult, Provisioner, Teardown
from .logging import LogConfig, setup_logging, teardown_logging
from .module import RunnerModule

__all__ = [
    "AWS",
    "AWSModule",
    "ConfigurationError",
    "EC2ClientFactory",
    "FleetError",
    "FleetProvisioner",
    "FleetResult",
    "GitHub",
    "GitHubConfig",
    "GitHubError",
    "InstanceTerminatedError",
    "Instances",
    "LaunchTemplateError",
    "LaunchTemplates",
    "LogConfig",
    "ProvisionResult",
    "Provisioner",
    "ProvisioningConfig",
    "ProvisioningError",
    "RunnerModule",
    "SpotRunnerError",
    "Teardown",
    "TeardownError",
    "WaitTimeoutError",
    "setup_logging",
    "teardown_logging",
    "user_data",
]
