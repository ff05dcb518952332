"""Secondary group membership sync."""

import shlex

from usercopy.models import GroupMembershipSet, RunConfiguration, StepResult


class GroupMembershipSynchronizer:
    def __init__(self, executor, logger):
        self.executor = executor
        self.logger = logger

    def sync(
        self,
        target: str,
        username: str,
        groups: GroupMembershipSet,
        config: RunConfiguration,
    ) -> StepResult:
        self.logger.info("Adding user '%s' to groups on %s", username, target)

        # A group named after the user is its primary group placeholder.
        secondary = groups.secondary_for(username)
        if not secondary:
            self.logger.debug("No secondary groups to add for '%s'", username)
            return StepResult(ok=True, skipped=True)

        if config.dry_run:
            self.logger.warning("DRY RUN: Would add user to groups: %s", " ".join(secondary))
            return StepResult(ok=True, skipped=True)

        missing = []
        for group in secondary:
            self.logger.debug("Adding user to group: %s", group)
            result = self.executor.execute(
                target,
                f"usermod -a -G {shlex.quote(group)} {shlex.quote(username)}",
            )
            if not result.ok:
                self.logger.warning(
                    "Could not add '%s' to group '%s' on %s: %s",
                    username,
                    group,
                    target,
                    result.error or f"exit status {result.status}",
                )
                missing.append(group)

        if missing:
            return StepResult(ok=False, message=f"Groups not applied: {', '.join(missing)}")

        self.logger.info("User added to groups successfully")
        return StepResult(ok=True)
