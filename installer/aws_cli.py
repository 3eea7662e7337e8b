import os
import platform
import shutil
import subprocess
import sys
import tempfile


class CLIInstallError(Exception):
    """A step of the AWS CLI installation failed"""


class AWSCLIInstaller:
    """
    Make sure the AWS command-line client is available.
    - def check_cli_installed: look the 'aws' binary up on PATH.
    - def get_cli_version: 'aws --version' output, or None.
    - def install_cli: download the v2 bundle, unpack it and run its installer.
    """

    DOWNLOAD_URLS = {
        "x86_64": "https://awscli.amazonaws.com/awscli-exe-linux-x86_64.zip",
        "aarch64": "https://awscli.amazonaws.com/awscli-exe-linux-aarch64.zip",
    }

    def __init__(self, binary="aws"):
        self.binary = binary

    def check_cli_installed(self):
        if shutil.which(self.binary) is None:
            print(f"❌ '{self.binary}' command not found on PATH", file=sys.stderr)
            return False
        return True

    def get_cli_version(self):
        if shutil.which(self.binary) is None:
            return None
        result = subprocess.run(
            [self.binary, "--version"], capture_output=True, text=True, check=True
        )
        # aws v1 printed its version on stderr
        return (result.stdout or result.stderr).strip()

    def get_download_url(self):
        if not sys.platform.startswith("linux"):
            raise CLIInstallError(f"Automatic install is only supported on Linux, not {sys.platform}")

        machine = platform.machine().lower()
        if machine == "arm64":
            machine = "aarch64"
        if machine == "amd64":
            machine = "x86_64"

        try:
            return self.DOWNLOAD_URLS[machine]
        except KeyError:
            raise CLIInstallError(f"No AWS CLI bundle for architecture '{machine}'")

    def install_cli(self):
        """Download and install AWS CLI v2; the download directory is always removed"""
        url = self.get_download_url()
        work_dir = tempfile.mkdtemp(prefix="awscli-install-")
        print(f"📥 Installing AWS CLI from {url}...")

        try:
            zip_path = os.path.join(work_dir, "awscliv2.zip")
            self._run(["curl", "-fsSL", url, "-o", zip_path])
            self._run(["unzip", "-q", zip_path, "-d", work_dir])
            self._run(self._privileged([os.path.join(work_dir, "aws", "install")]))
        finally:
            shutil.rmtree(work_dir, ignore_errors=True)

        if not self.check_cli_installed():
            raise CLIInstallError(f"Installer finished but '{self.binary}' is still not on PATH")

        print(f"✅ AWS CLI installed: {self.get_cli_version()}")

    def _privileged(self, command):
        if os.geteuid() == 0:
            return command
        return ["sudo"] + command

    def _run(self, command):
        try:
            subprocess.run(command, check=True)
        except FileNotFoundError as e:
            raise CLIInstallError(f"Required program not found: {e.filename}") from e
        except subprocess.CalledProcessError as e:
            raise CLIInstallError(
                f"Command failed with exit code {e.returncode}: {' '.join(command)}"
            ) from e
