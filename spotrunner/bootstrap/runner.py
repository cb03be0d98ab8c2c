"""User-data script for a GitHub Actions runner instance.

User data runs as root on first boot. The script either reuses a runner
pre-installed in the image or downloads a pinned release, registers it
with a one-time token, then starts it.
"""

from __future__ import annotations

from ..config import ProvisioningConfig
from ..constants import PRE_RUNNER_SCRIPT, RUNNER_DIR
from .compose import Op, commands
from .ops import (
    capture_output,
    cd,
    chown,
    detect_arch,
    download_runner,
    env_export,
    file,
    mkcd,
    register,
    run,
    service,
    shebang,
    source,
)


def _install(config: ProvisioningConfig) -> Op:
    if config.runner_home_dir:
        # Runner and its dependencies are baked into the AMI
        return [
            cd(config.runner_home_dir),
            file(PRE_RUNNER_SCRIPT, config.pre_runner_script),
            source(PRE_RUNNER_SCRIPT),
        ]
    return [
        mkcd(RUNNER_DIR),
        file(PRE_RUNNER_SCRIPT, config.pre_runner_script),
        source(PRE_RUNNER_SCRIPT),
        detect_arch(),
        download_runner(),
    ]


def _start(config: ProvisioningConfig) -> Op:
    if config.run_as_service:
        return service(config.run_as_user)
    return run(config.run_as_user)


def user_data(token: str, label: str, config: ProvisioningConfig) -> list[str]:
    """Build the boot script as an ordered list of shell commands.

    Args:
        token: One-time runner registration token.
        label: Label the runner registers with; jobs target it via ``runs-on``.
        config: Provisioning configuration.

    Returns:
        Commands in execution order. Join them with ``render`` to get the
        script text.
    """
    return commands(
        shebang(),
        capture_output(),
        _install(config),
        env_export(RUNNER_ALLOW_RUNASROOT="1"),
        register(config.repository_url, token, label),
        chown(config.run_as_user) if config.run_as_user else None,
        _start(config),
    )
