"""POSIX ACL replication between hosts."""

import shlex

from usercopy.models import RunConfiguration, StepResult


class AclReplicator:
    """Streams `getfacl -R` output from the source into `setfacl --restore` on the target."""

    def __init__(self, executor, pipeline, logger):
        self.executor = executor
        self.pipeline = pipeline
        self.logger = logger

    def tool_available(self, host: str, tool: str) -> bool:
        return self.executor.execute(host, f"command -v {tool}").ok

    def copy(self, source: str, target: str, path: str, config: RunConfiguration) -> StepResult:
        self.logger.debug("Copying ACLs for path: %s", path)

        if config.dry_run:
            self.logger.warning("DRY RUN: Would copy ACLs for %s", path)
            return StepResult(ok=True, skipped=True)

        if not (self.tool_available(source, "getfacl") and self.tool_available(target, "setfacl")):
            self.logger.warning("ACL tools not available on all servers - skipping ACL copy")
            return StepResult(ok=True, skipped=True, message="ACL tools not available")

        self.logger.info("Copying ACLs for %s", path)
        # Absolute names in the dump, restored from / so paths resolve the same on the target.
        result = self.pipeline.run(
            self.executor.build_command(source, f"getfacl -R -p {shlex.quote(path)}"),
            self.executor.build_command(target, "cd / && setfacl --restore=-"),
        )
        if not result.ok:
            self.logger.warning("ACL copy failed, but continuing...")
            return StepResult(ok=False, message=result.error)

        self.logger.info("ACLs copied successfully")
        return StepResult(ok=True)
