"""Remote shell execution for usercopy."""

from typing import Callable, List, Optional

from usercopy.constants import COMMAND_NOT_FOUND_STATUS, TIMEOUT_STATUS
from usercopy.errors import CopyError
from usercopy.models import CommandResult, RunConfiguration
from usercopy.services.locality import local_matcher


class RemoteExecutor:
    """Runs shell command strings locally or over ssh as the administrative account.

    Password authentication is left to ssh itself, so every remote call may
    prompt on the terminal when no key is configured.
    """

    LOCAL_SHELL = ["/bin/sh", "-c"]

    def __init__(
        self,
        config: RunConfiguration,
        command_runner,
        logger,
        locality: Optional[Callable[[str], bool]] = None,
    ):
        self.config = config
        self.command_runner = command_runner
        self.logger = logger
        self.locality = locality or local_matcher()

    def is_local(self, host: str) -> bool:
        return self.locality(host)

    def ssh_base(self, connect_timeout: Optional[int] = None) -> List[str]:
        cmd = ["ssh", "-o", "StrictHostKeyChecking=no"]
        if connect_timeout is not None:
            cmd += ["-o", f"ConnectTimeout={connect_timeout}"]
        cmd += ["-p", str(self.config.port)]
        if self.config.ssh_key:
            cmd += ["-i", self.config.ssh_key]
        return cmd

    def build_command(
        self,
        host: str,
        command: str,
        connect_timeout: Optional[int] = None,
    ) -> List[str]:
        if self.is_local(host):
            return self.LOCAL_SHELL + [command]
        return self.ssh_base(connect_timeout) + [f"{self.config.admin_user}@{host}", command]

    def execute(
        self,
        host: str,
        command: str,
        connect_timeout: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        cmd = self.build_command(host, command, connect_timeout=connect_timeout)
        try:
            result = self.command_runner.run(cmd, check=False, capture_output=True, timeout=timeout)
        except CopyError as exc:
            self.logger.debug("Command on %s could not run: %s", host, exc)
            status = TIMEOUT_STATUS if "timed out" in str(exc) else COMMAND_NOT_FOUND_STATUS
            return CommandResult(output="", status=status, error=str(exc))

        return CommandResult(
            output=result.stdout or "",
            status=result.returncode,
            error=(result.stderr or "").strip(),
        )

    def probe(self, host: str) -> bool:
        """Checks that a host accepts remote commands within the connect timeout."""
        if self.is_local(host):
            return True

        result = self.execute(
            host,
            "echo 'Connection test'",
            connect_timeout=self.config.connect_timeout,
        )
        if not result.ok and result.error:
            self.logger.debug("Connection test to %s failed: %s", host, result.error)
        return result.ok
