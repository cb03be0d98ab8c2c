"""Core bootstrap operations.

Each operation is a function returning an Op (string or callable), so the
runner script reads as a declarative list of steps.
"""

from __future__ import annotations

from ..constants import RUNNER_DOWNLOAD_URL, RUNNER_VERSION, USER_DATA_LOG
from .compose import Op

# =============================================================================
# Script Header
# =============================================================================


def shebang() -> Op:
    return "#!/bin/bash"


def capture_output(log_file: str = USER_DATA_LOG, tag: str = "user-data") -> Op:
    """Mirror all script output to a log file and the system logger.

    Example:
        >>> capture_output()()
        'exec > >(tee /var/log/user-data.log|logger -t user-data -s 2>/dev/console) 2>&1'
    """
    return lambda: f"exec > >(tee {log_file}|logger -t {tag} -s 2>/dev/console) 2>&1"


# =============================================================================
# File Operations
# =============================================================================


def cd(path: str, quote: bool = True) -> Op:
    """Change directory.

    Example:
        >>> cd("/home/runner")()
        'cd "/home/runner"'
    """
    target = f'"{path}"' if quote else path
    return lambda: f"cd {target}"


def mkcd(path: str) -> Op:
    """Create a directory and change into it.

    Example:
        >>> mkcd("actions-runner")()
        'mkdir actions-runner && cd actions-runner'
    """
    return lambda: f"mkdir {path} && cd {path}"


def heredoc_delimiter(content: str, base: str = "EOF") -> str:
    """Return a heredoc delimiter that no line of ``content`` equals.

    Example:
        >>> heredoc_delimiter("cat <<EOF\\nhi\\nEOF")
        'EOF_1'
    """
    lines = set(content.splitlines())
    delimiter, n = base, 0
    while delimiter in lines:
        n += 1
        delimiter = f"{base}_{n}"
    return delimiter


def file(path: str, content: str, delimiter: str = "EOF") -> Op:
    """Write content to a file using a quoted heredoc.

    The delimiter is suffixed until it cannot close the heredoc early, so
    user content is written verbatim and never executed by the outer script.

    Example:
        >>> file("pre.sh", "echo hi")()
        "cat > pre.sh << 'EOF'\\necho hi\\nEOF"
    """

    def generate() -> str:
        end = heredoc_delimiter(content, delimiter)
        return "\n".join([f"cat > {path} << '{end}'", content, end])

    return generate


def source(path: str) -> Op:
    return lambda: f"source {path}"


def chown(user: str, path: str = ".") -> Op:
    """Recursively change ownership.

    Example:
        >>> chown("ubuntu")()
        'chown -R ubuntu .'
    """
    return lambda: f"chown -R {user} {path}"


# =============================================================================
# Environment
# =============================================================================


def env_export(**variables: str) -> Op:
    """Export environment variables, one command per variable.

    Example:
        >>> env_export(RUNNER_ALLOW_RUNASROOT="1")
        ['export RUNNER_ALLOW_RUNASROOT=1']
    """
    return [f"export {key}={value}" for key, value in variables.items()]


def detect_arch(var: str = "RUNNER_ARCH") -> Op:
    """Detect CPU architecture and export it in runner naming (arm64/x64)."""
    return lambda: (
        'case $(uname -m) in aarch64) ARCH="arm64" ;; amd64|x86_64) ARCH="x64" ;; esac'
        f" && export {var}=${{ARCH}}"
    )


# =============================================================================
# Runner Operations
# =============================================================================


def download_runner(version: str = RUNNER_VERSION, arch_var: str = "RUNNER_ARCH") -> Op:
    """Download and unpack the runner release for the detected architecture.

    Expands to two commands: the download and the unpack.
    """
    tarball = f"actions-runner-linux-${{{arch_var}}}-{version}.tar.gz"
    return [
        f"curl -O -L {RUNNER_DOWNLOAD_URL}/v{version}/{tarball}",
        f"tar xzf ./{tarball}",
    ]


def register(url: str, token: str, label: str) -> Op:
    """Register the runner against a repository."""
    return lambda: f"./config.sh --url {url} --token {token} --labels {label}"


def service(user: str | None = None) -> Op:
    """Install and start the runner as a system service.

    Example:
        >>> service("ubuntu")
        ['./svc.sh install ubuntu', './svc.sh start']
    """
    install = f"./svc.sh install {user}" if user else "./svc.sh install"
    return [install, "./svc.sh start"]


def run(user: str | None = None) -> Op:
    """Run the runner in the foreground, optionally as another user.

    Example:
        >>> run("ubuntu")()
        'su ubuntu -c ./run.sh'
    """
    return lambda: f"su {user} -c ./run.sh" if user else "./run.sh"
