"""SSH credential directory replication."""

import shlex

from usercopy.constants import (
    PRIVATE_FILE_MODE,
    PUBLIC_KEY_MODE,
    PUBLIC_KEY_SUFFIX,
    SSH_DIR_MODE,
)
from usercopy.models import AccountRecord, RunConfiguration, StepResult
from usercopy.services.tree import TreeReplicator


class CredentialDirectoryReplicator(TreeReplicator):
    """Copies `~/.ssh` and forces the modes sshd accepts, whatever the source had."""

    def __init__(self, executor, pipeline, logger):
        super().__init__(executor, pipeline, logger, acl_replicator=None)

    def source_has_directory(self, source: str, path: str) -> bool:
        return self.executor.execute(source, f"test -d {shlex.quote(path)}").ok

    @staticmethod
    def build_normalize_script(path: str, account: AccountRecord) -> str:
        quoted = shlex.quote(path)
        files = f"find {quoted} -type f"
        return "\n".join(
            [
                "set -e",
                f"chown -R {account.uid}:{account.gid} {quoted}",
                f"chmod {SSH_DIR_MODE:o} {quoted}",
                f"find {quoted} -mindepth 1 -type d -exec chmod {SSH_DIR_MODE:o} {{}} +",
                f"{files} ! -name '*{PUBLIC_KEY_SUFFIX}' -exec chmod {PRIVATE_FILE_MODE:o} {{}} +",
                f"{files} -name '*{PUBLIC_KEY_SUFFIX}' -exec chmod {PUBLIC_KEY_MODE:o} {{}} +",
            ]
        )

    def normalize_permissions(self, target: str, path: str, account: AccountRecord) -> StepResult:
        result = self.executor.execute(target, self.build_normalize_script(path, account))
        if not result.ok:
            return StepResult(ok=False, message=f"Could not set permissions on {path}: {result.error}")
        return StepResult(ok=True)

    def replicate_credentials(
        self,
        source: str,
        target: str,
        account: AccountRecord,
        config: RunConfiguration,
    ) -> StepResult:
        ssh_dir = account.ssh_dir
        self.logger.debug("Checking for SSH keys in %s", ssh_dir)

        if not self.source_has_directory(source, ssh_dir):
            self.logger.debug("No .ssh directory found for user '%s'", account.name)
            return StepResult(ok=True, skipped=True)

        if config.dry_run:
            self.logger.warning("DRY RUN: Would copy SSH keys from %s", ssh_dir)
            return StepResult(ok=True, skipped=True)

        self.logger.info("Copying SSH keys for '%s'", account.name)
        result = self.transfer(source, target, ssh_dir)
        if result.ok:
            result = self.normalize_permissions(target, ssh_dir, account)
        if not result.ok:
            self.logger.error("Failed to copy SSH keys: %s", result.message)
            return result

        self.logger.info("SSH keys copied successfully")
        return StepResult(ok=True)
