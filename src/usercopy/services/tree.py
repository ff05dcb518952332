"""Directory tree replication over a tar stream."""

import shlex
from typing import Optional

from usercopy.models import AccountRecord, RunConfiguration, StepResult


class TreeReplicator:
    """Copies a directory subtree from source to target and hands it to the account."""

    def __init__(self, executor, pipeline, logger, acl_replicator=None):
        self.executor = executor
        self.pipeline = pipeline
        self.logger = logger
        self.acl_replicator = acl_replicator

    @staticmethod
    def pack_command(path: str) -> str:
        return f"cd {shlex.quote(path)} && tar czf - ."

    @staticmethod
    def unpack_command(path: str) -> str:
        quoted = shlex.quote(path)
        return f"mkdir -p {quoted} && cd {quoted} && tar xzpf -"

    def ensure_directory(self, target: str, path: str) -> StepResult:
        result = self.executor.execute(target, f"mkdir -p {shlex.quote(path)}")
        if not result.ok:
            return StepResult(ok=False, message=f"Could not create {path} on {target}: {result.error}")
        return StepResult(ok=True)

    def transfer(self, source: str, target: str, path: str) -> StepResult:
        result = self.pipeline.run(
            self.executor.build_command(source, self.pack_command(path)),
            self.executor.build_command(target, self.unpack_command(path)),
        )
        if not result.ok:
            return StepResult(ok=False, message=result.error or f"stream of {path} failed")
        return StepResult(ok=True)

    def fix_ownership(self, target: str, path: str, account: AccountRecord) -> StepResult:
        result = self.executor.execute(
            target,
            f"chown -R {account.uid}:{account.gid} {shlex.quote(path)}",
        )
        if not result.ok:
            return StepResult(ok=False, message=f"chown of {path} failed: {result.error}")
        return StepResult(ok=True)

    def replicate(
        self,
        source: str,
        target: str,
        path: str,
        account: AccountRecord,
        config: RunConfiguration,
    ) -> StepResult:
        self.logger.info("Copying %s from %s to %s", path, source, target)

        if config.dry_run:
            self.logger.warning("DRY RUN: Would copy %s from %s to %s", path, source, target)
            return StepResult(ok=True, skipped=True)

        result = self.ensure_directory(target, path)
        if result.ok:
            result = self.transfer(source, target, path)
        if result.ok:
            result = self.fix_ownership(target, path, account)
        if not result.ok:
            self.logger.error("Failed to copy %s: %s", path, result.message)
            return result

        self._copy_acls(source, target, path, config)
        self.logger.info("Copied %s to %s", path, target)
        return StepResult(ok=True)

    def _copy_acls(
        self,
        source: str,
        target: str,
        path: str,
        config: RunConfiguration,
    ) -> Optional[StepResult]:
        if not config.copy_acls or self.acl_replicator is None:
            return None
        return self.acl_replicator.copy(source, target, path, config)
