from __future__ import annotations

from dataclasses import replace

import pytest

from spotrunner.bootstrap import render, user_data
from spotrunner.config import ProvisioningConfig

pytestmark = [pytest.mark.unit]

TOKEN = "AABBCCDD"
LABEL = "a1b2c3d4"


def count(cmds: list[str], needle: str) -> int:
    return sum(1 for cmd in cmds if needle in cmd)


class TestHeader:
    def test_starts_with_shebang_and_output_capture(self, config: ProvisioningConfig):
        cmds = user_data(TOKEN, LABEL, config)
        assert cmds[0] == "#!/bin/bash"
        assert cmds[1] == "exec > >(tee /var/log/user-data.log|logger -t user-data -s 2>/dev/console) 2>&1"

    def test_registration_uses_repository_token_and_label(self, config: ProvisioningConfig):
        cmds = user_data(TOKEN, LABEL, config)
        assert "./config.sh --url https://github.com/acme/app --token AABBCCDD --labels a1b2c3d4" in cmds

    def test_root_run_is_allowed_before_registration(self, config: ProvisioningConfig):
        cmds = user_data(TOKEN, LABEL, config)
        export = cmds.index("export RUNNER_ALLOW_RUNASROOT=1")
        register = next(i for i, cmd in enumerate(cmds) if cmd.startswith("./config.sh"))
        assert export < register


class TestDownloadedRunner:
    def test_creates_working_directory(self, config: ProvisioningConfig):
        cmds = user_data(TOKEN, LABEL, config)
        assert cmds[2] == "mkdir actions-runner && cd actions-runner"

    def test_single_arch_detection_download_and_unpack(self, config: ProvisioningConfig):
        cmds = user_data(TOKEN, LABEL, config)
        assert count(cmds, "uname -m") == 1
        assert count(cmds, "curl -O -L") == 1
        assert count(cmds, "tar xzf") == 1

    def test_arch_mapping(self, config: ProvisioningConfig):
        arch = next(cmd for cmd in user_data(TOKEN, LABEL, config) if "uname -m" in cmd)
        assert 'aarch64) ARCH="arm64"' in arch
        assert 'amd64|x86_64) ARCH="x64"' in arch
        assert "export RUNNER_ARCH=${ARCH}" in arch

    def test_download_is_pinned_and_arch_specific(self, config: ProvisioningConfig):
        cmds = user_data(TOKEN, LABEL, config)
        download = next(cmd for cmd in cmds if cmd.startswith("curl"))
        assert download == (
            "curl -O -L https://github.com/actions/runner/releases/download/v2.313.0/"
            "actions-runner-linux-${RUNNER_ARCH}-2.313.0.tar.gz"
        )
        assert "tar xzf ./actions-runner-linux-${RUNNER_ARCH}-2.313.0.tar.gz" in cmds

    def test_download_happens_after_arch_detection(self, config: ProvisioningConfig):
        cmds = user_data(TOKEN, LABEL, config)
        arch = next(i for i, cmd in enumerate(cmds) if "uname -m" in cmd)
        download = next(i for i, cmd in enumerate(cmds) if cmd.startswith("curl"))
        assert arch < download


class TestPreinstalledRunner:
    def test_changes_into_home_dir(self, config: ProvisioningConfig):
        cmds = user_data(TOKEN, LABEL, replace(config, runner_home_dir="/home/runner/actions-runner"))
        assert cmds[2] == 'cd "/home/runner/actions-runner"'

    def test_no_download_or_arch_detection(self, config: ProvisioningConfig):
        cmds = user_data(TOKEN, LABEL, replace(config, runner_home_dir="/opt/runner"))
        assert count(cmds, "uname -m") == 0
        assert count(cmds, "curl") == 0
        assert count(cmds, "tar xzf") == 0
        assert count(cmds, "mkdir") == 0

    def test_still_registers(self, config: ProvisioningConfig):
        cmds = user_data(TOKEN, LABEL, replace(config, runner_home_dir="/opt/runner"))
        assert count(cmds, "./config.sh --url") == 1


class TestPreRunnerScript:
    @pytest.mark.parametrize("home", [None, "/opt/runner"])
    def test_script_written_then_sourced(self, config: ProvisioningConfig, home: str | None):
        script = "sudo apt-get install -y jq\nexport FOO=bar"
        cmds = user_data(TOKEN, LABEL, replace(config, runner_home_dir=home, pre_runner_script=script))
        written = next(i for i, cmd in enumerate(cmds) if cmd.startswith("cat > pre-runner-script.sh"))
        assert script in cmds[written]
        assert cmds[written + 1] == "source pre-runner-script.sh"

    def test_empty_script_still_written(self, config: ProvisioningConfig):
        cmds = user_data(TOKEN, LABEL, config)
        assert count(cmds, "pre-runner-script.sh") == 2

    @pytest.mark.parametrize("home", [None, "/opt/runner"])
    def test_script_with_own_heredoc_is_written_verbatim(self, config: ProvisioningConfig, home: str | None):
        script = "cat <<EOF > motd\nhello\nEOF\necho done"
        cmds = user_data(TOKEN, LABEL, replace(config, runner_home_dir=home, pre_runner_script=script))
        lines = render(cmds).splitlines()

        # Read the heredoc the way bash does: up to the first line equal to the delimiter
        start = next(i for i, line in enumerate(lines) if line.startswith("cat > pre-runner-script.sh << '"))
        delimiter = lines[start].split("'")[1]
        end = lines.index(delimiter, start + 1)

        assert "\n".join(lines[start + 1 : end]) == script
        assert lines[end + 1] == "source pre-runner-script.sh"


class TestStartCommand:
    def test_default_runs_in_foreground(self, config: ProvisioningConfig):
        cmds = user_data(TOKEN, LABEL, config)
        assert cmds[-1] == "./run.sh"
        assert count(cmds, "chown") == 0

    def test_run_as_user_switches_user(self, config: ProvisioningConfig):
        cmds = user_data(TOKEN, LABEL, replace(config, run_as_user="ubuntu"))
        assert cmds[-2] == "chown -R ubuntu ."
        assert cmds[-1] == "su ubuntu -c ./run.sh"

    def test_service_installs_then_starts(self, config: ProvisioningConfig):
        cmds = user_data(TOKEN, LABEL, replace(config, run_as_service=True))
        assert cmds[-2:] == ["./svc.sh install", "./svc.sh start"]

    def test_service_as_user(self, config: ProvisioningConfig):
        cmds = user_data(TOKEN, LABEL, replace(config, run_as_service=True, run_as_user="ubuntu"))
        assert cmds[-3:] == ["chown -R ubuntu .", "./svc.sh install ubuntu", "./svc.sh start"]

    @pytest.mark.parametrize("home", [None, "/opt/runner"])
    @pytest.mark.parametrize("user", [None, "ubuntu"])
    def test_service_never_runs_directly(self, config: ProvisioningConfig, home: str | None, user: str | None):
        cmds = user_data(TOKEN, LABEL, replace(config, runner_home_dir=home, run_as_user=user, run_as_service=True))
        assert count(cmds, "run.sh") == 0
        assert cmds[-1] == "./svc.sh start"
        assert cmds[-2].startswith("./svc.sh install")


class TestRender:
    def test_render_joins_commands_with_newlines(self, config: ProvisioningConfig):
        cmds = user_data(TOKEN, LABEL, config)
        script = render(cmds)
        assert script.startswith("#!/bin/bash\n")
        assert script.endswith("./run.sh")
        assert script.split("\n")[:2] == cmds[:2]
