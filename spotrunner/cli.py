"""Command-line entry point, run as a GitHub Actions step.

Inputs come from ``INPUT_<NAME>`` environment variables, the way the Actions
runner exposes ``with:`` values; outputs are appended to ``$GITHUB_OUTPUT``.

    spotrunner start   # register a runner on a fresh spot instance
    spotrunner stop    # terminate it and clean up
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
import uuid
from collections.abc import Mapping
from contextlib import suppress
from typing import TextIO

import httpx
from injector import Injector
from loguru import logger

from .aws.clients import AWSModule, EC2ClientFactory
from .aws.config import AWS
from .aws.instances import Instances
from .config import ProvisioningConfig
from .constants import GITHUB_API_URL, GITHUB_SERVER_URL
from .exceptions import ConfigurationError
from .github import GitHub, GitHubConfig
from .lifecycle import ProvisionResult, Provisioner, Teardown
from .logging import LogConfig, setup_logging, teardown_logging
from .module import RunnerModule

log = logger.bind(component="cli")

MODES = ("start", "stop")

INPUTS = (
    "mode",
    "github-token",
    "ec2-image-id",
    "ec2-instance-type",
    "subnet-id",
    "security-group-id",
    "iam-role-name",
    "runner-home-dir",
    "pre-runner-script",
    "run-as-user",
    "run-as-service",
    "label",
    "ec2-instance-id",
    "template-id",
    "fleet-id",
    "aws-region",
)


def get_input(environ: Mapping[str, str], name: str) -> str:
    """Read one action input; hyphens may appear as-is or as underscores."""
    key = f"INPUT_{name.replace(' ', '_').upper()}"
    for candidate in (key, key.replace("-", "_")):
        value = environ.get(candidate)
        if value:
            return value
    return ""


def read_inputs(environ: Mapping[str, str]) -> dict[str, str]:
    return {name: get_input(environ, name) for name in INPUTS}


class Outputs:
    """Writes ``name=value`` lines to the job's output file, or a stream."""

    def __init__(self, path: str | None = None, stream: TextIO | None = None) -> None:
        self.path = path
        self.stream = stream or sys.stdout
        self.values: dict[str, str] = {}

    def __call__(self, name: str, value: str) -> None:
        self.values[name] = value
        line = f"{name}={value}\n"
        if self.path:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line)
        else:
            self.stream.write(line)


def github_config(inputs: Mapping[str, str], environ: Mapping[str, str]) -> GitHubConfig:
    return GitHubConfig(
        token=inputs.get("github-token", ""),
        repository=environ.get("GITHUB_REPOSITORY", ""),
        api_url=environ.get("GITHUB_API_URL") or GITHUB_API_URL,
        server_url=environ.get("GITHUB_SERVER_URL") or GITHUB_SERVER_URL,
    )


def aws_config(inputs: Mapping[str, str], environ: Mapping[str, str]) -> AWS:
    region = inputs.get("aws-region") or environ.get("AWS_REGION") or environ.get("AWS_DEFAULT_REGION")
    return AWS(region=region or None)


def _injector(aws: AWS, provisioning: ProvisioningConfig | None = None, ec2: EC2ClientFactory | None = None) -> Injector:
    return Injector([AWSModule(ec2), RunnerModule(aws=aws, provisioning=provisioning)])


async def start(
    inputs: Mapping[str, str],
    environ: Mapping[str, str],
    outputs: Outputs,
    *,
    ec2: EC2ClientFactory | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ProvisionResult:
    """Register a runner on a new spot instance and wait until it runs.

    Configuration is validated before any remote call is made.
    """
    github = GitHub(github_config(inputs, environ), transport=transport)
    config = ProvisioningConfig.from_inputs(inputs, github.config.repository_url)
    injector = _injector(aws_config(inputs, environ), config, ec2)

    label = inputs.get("label") or uuid.uuid4().hex[:8]
    token = await github.registration_token()

    result = await injector.get(Provisioner).start(label, token, on_output=outputs)
    await injector.get(Instances).wait_running(result.instance_id)
    return result


async def stop(
    inputs: Mapping[str, str],
    environ: Mapping[str, str],
    *,
    ec2: EC2ClientFactory | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    """Tear down AWS resources, then deregister the runner.

    The runner stays registered when teardown fails.
    """
    injector = _injector(aws_config(inputs, environ), ec2=ec2)

    await injector.get(Teardown).cleanup(
        inputs.get("ec2-instance-id") or None,
        inputs.get("template-id") or None,
        inputs.get("fleet-id") or None,
    )

    label = inputs.get("label")
    if label:
        await GitHub(github_config(inputs, environ), transport=transport).remove_runner(label)
    else:
        log.info("No runner label, nothing to remove from GitHub")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="spotrunner",
        description="Start or stop an ephemeral EC2 spot instance as a GitHub Actions runner",
    )
    parser.add_argument("mode", nargs="?", choices=MODES, help="Defaults to the 'mode' input")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", default=None)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None, environ: Mapping[str, str] | None = None) -> int:
    args = parse_args(argv)
    env = os.environ if environ is None else environ
    inputs = read_inputs(env)
    mode = args.mode or inputs["mode"]

    # Replace loguru's default stderr sink with the configured one
    with suppress(ValueError):
        logger.remove(0)
    handler_ids = setup_logging(
        LogConfig(level=args.log_level, file=args.log_file, annotations=env.get("GITHUB_ACTIONS") == "true")
    )

    try:
        match mode:
            case "start":
                result = asyncio.run(start(inputs, env, Outputs(env.get("GITHUB_OUTPUT"))))
                log.info("Runner {label} is ready on {instance_id}", label=result.label, instance_id=result.instance_id)
            case "stop":
                asyncio.run(stop(inputs, env))
            case _:
                raise ConfigurationError(f"Wrong mode '{mode}'. Allowed values: {', '.join(MODES)}")
    except Exception as e:
        log.error("spotrunner {mode} failed: {error}", mode=mode or "-", error=e)
        return 1
    finally:
        teardown_logging(handler_ids)

    return 0


__all__ = ["Outputs", "main", "read_inputs"]
