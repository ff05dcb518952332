"""Per-target copy sequence."""

from typing import List

from usercopy.models import (
    ConflictDecision,
    PerTargetOutcome,
    RunConfiguration,
    SourceSnapshot,
    Stage,
)


class TargetOrchestrator:
    """Runs provision, home copy, key copy and group sync against one target.

    Connectivity and provisioning failures end the target. Later stages only
    degrade it: each failure is logged and the sequence moves on.
    """

    def __init__(
        self,
        config: RunConfiguration,
        executor,
        inspector,
        provisioner,
        tree_replicator,
        credential_replicator,
        group_synchronizer,
        conflict_policy,
        logger,
    ):
        self.config = config
        self.executor = executor
        self.inspector = inspector
        self.provisioner = provisioner
        self.tree_replicator = tree_replicator
        self.credential_replicator = credential_replicator
        self.group_synchronizer = group_synchronizer
        self.conflict_policy = conflict_policy
        self.logger = logger

    def copy_to_target(self, target: str, snapshot: SourceSnapshot) -> PerTargetOutcome:
        config = self.config
        source = config.source_host
        account = snapshot.account
        username = account.name
        completed: List[Stage] = []
        degraded: List[Stage] = []

        self.logger.info("Starting user copy: %s from %s to %s", username, source, target)

        if not self.executor.probe(target):
            self.logger.error("Cannot connect to target server: %s", target)
            return PerTargetOutcome(target=target, succeeded=False, failed_stage=Stage.CONNECTIVITY_CHECK)
        completed.append(Stage.CONNECTIVITY_CHECK)

        if self.inspector.account_exists(target, username):
            self.logger.warning("User '%s' already exists on %s", username, target)
            decision = self.conflict_policy(target, username)
            if decision is not ConflictDecision.OVERWRITE:
                self.logger.info("Skipping %s", target)
                return PerTargetOutcome(
                    target=target,
                    succeeded=True,
                    skipped=True,
                    completed_stages=tuple(completed),
                )
            self.provisioner.purge(target, username, config)
        completed.append(Stage.CONFLICT_CHECK)

        if not self.provisioner.provision(target, snapshot, config).ok:
            return PerTargetOutcome(
                target=target,
                succeeded=False,
                failed_stage=Stage.PROVISIONED,
                completed_stages=tuple(completed),
            )
        completed.append(Stage.PROVISIONED)

        stages = (
            (
                Stage.HOME_COPIED,
                "Home directory copy",
                lambda: self.tree_replicator.replicate(source, target, account.home, account, config),
            ),
            (
                Stage.KEYS_COPIED,
                "SSH keys copy",
                lambda: self.credential_replicator.replicate_credentials(source, target, account, config),
            ),
            (
                Stage.GROUPS_SYNCED,
                "Group assignment",
                lambda: self.group_synchronizer.sync(target, username, snapshot.groups, config),
            ),
        )
        for stage, label, action in stages:
            if not action().ok:
                self.logger.warning("%s failed, but continuing...", label)
                degraded.append(stage)
            completed.append(stage)

        completed.append(Stage.DONE)
        self.logger.info("User '%s' successfully copied to %s", username, target)
        return PerTargetOutcome(
            target=target,
            succeeded=True,
            completed_stages=tuple(completed),
            degraded_stages=tuple(degraded),
        )
