import logging
import os
from typing import Callable, List, Optional, Sequence, Tuple, Union

import click
from rich.console import Console
from rich.table import Table

from .errors import CopyError
from .errors_catalog import actionable_error
from .models import PerTargetOutcome, RunConfiguration
from .services.acl import AclReplicator
from .services.command_runner import CommandRunner
from .services.conflict import ConflictPolicy, build_policy
from .services.credentials import CredentialDirectoryReplicator
from .services.groups import GroupMembershipSynchronizer
from .services.inspector import AccountInspector
from .services.orchestrator import TargetOrchestrator
from .services.pipeline import StreamPipeline
from .services.provisioner import AccountProvisioner
from .services.remote import RemoteExecutor
from .services.tree import TreeReplicator

console = Console()
logger = logging.getLogger("usercopy")

TARGET_FAILURE_EXIT_CODE = 2


def parse_target_list(value: Union[str, Sequence[str]]) -> Tuple[str, ...]:
    """Splits a comma-separated target list, trimming whitespace and dropping empty entries."""
    entries = value.split(",") if isinstance(value, str) else [str(item) for item in value]
    targets = tuple(entry.strip() for entry in entries if entry.strip())
    if not targets:
        raise CopyError(actionable_error("invalid_target_list", value=str(value)))
    return targets


def _pause():
    click.pause(info="Press Enter to continue or Ctrl+C to cancel...")


class UserCopier:
    def __init__(
        self,
        config: RunConfiguration,
        conflict_policy: Optional[ConflictPolicy] = None,
        command_runner: Optional[CommandRunner] = None,
        pipeline: Optional[StreamPipeline] = None,
        pause: Optional[Callable[[], None]] = None,
        locality: Optional[Callable[[str], bool]] = None,
    ):
        self.config = config
        self.pause = pause or _pause
        self.conflict_policy = conflict_policy or build_policy(
            config.on_conflict,
            config.conflict_decisions,
        )

        self.command_runner = command_runner or CommandRunner(logger=logger)
        self.pipeline = pipeline or StreamPipeline(logger=logger)
        self.executor = RemoteExecutor(
            config=config,
            command_runner=self.command_runner,
            logger=logger,
            locality=locality,
        )
        self.inspector = AccountInspector(executor=self.executor, logger=logger)
        self.provisioner = AccountProvisioner(executor=self.executor, logger=logger, console=console)
        self.acl_replicator = AclReplicator(
            executor=self.executor,
            pipeline=self.pipeline,
            logger=logger,
        )
        self.tree_replicator = TreeReplicator(
            executor=self.executor,
            pipeline=self.pipeline,
            logger=logger,
            acl_replicator=self.acl_replicator,
        )
        self.credential_replicator = CredentialDirectoryReplicator(
            executor=self.executor,
            pipeline=self.pipeline,
            logger=logger,
        )
        self.group_synchronizer = GroupMembershipSynchronizer(executor=self.executor, logger=logger)
        self.orchestrator = TargetOrchestrator(
            config=config,
            executor=self.executor,
            inspector=self.inspector,
            provisioner=self.provisioner,
            tree_replicator=self.tree_replicator,
            credential_replicator=self.credential_replicator,
            group_synchronizer=self.group_synchronizer,
            conflict_policy=self.conflict_policy,
            logger=logger,
        )

    def has_usable_key(self) -> bool:
        key = self.config.ssh_key
        return bool(key) and os.path.isfile(os.path.expanduser(key))

    def needs_password(self) -> bool:
        if self.has_usable_key():
            return False
        hosts = (self.config.source_host,) + self.config.target_hosts
        return any(not self.executor.is_local(host) for host in hosts)

    def warn_password_prompts(self):
        logger.info("No SSH key found. You'll need to enter the %s password.", self.config.admin_user)
        logger.warning("IMPORTANT: You'll be asked for the password several times during execution.")
        logger.warning("This is normal - just enter the same password each time.")
        self.pause()

    def check_source(self):
        source = self.config.source_host
        if self.executor.is_local(source):
            return
        if not self.executor.probe(source):
            raise CopyError(
                actionable_error(
                    "source_unreachable",
                    host=source,
                    admin_user=self.config.admin_user,
                    port=str(self.config.port),
                )
            )

    def report(self, outcomes: List[PerTargetOutcome]):
        table = Table(title="User copy summary")
        table.add_column("Target")
        table.add_column("Result")
        table.add_column("Failed stage")
        table.add_column("Degraded stages")

        for outcome in outcomes:
            if not outcome.succeeded:
                result = "[red]failed[/red]"
            elif outcome.skipped:
                result = "[yellow]skipped[/yellow]"
            elif outcome.degraded_stages:
                result = "[yellow]partial[/yellow]"
            else:
                result = "[green]copied[/green]"
            table.add_row(
                outcome.target,
                result,
                outcome.failed_stage.value if outcome.failed_stage else "",
                ", ".join(stage.value for stage in outcome.degraded_stages),
            )
        console.print(table)

    def exit_code(self, outcomes: List[PerTargetOutcome]) -> int:
        failed = [outcome.target for outcome in outcomes if not outcome.succeeded]
        if failed and self.config.fail_on_target_error:
            return TARGET_FAILURE_EXIT_CODE
        return 0

    def run(self) -> int:
        config = self.config
        outcomes: List[PerTargetOutcome] = []

        try:
            logger.info("Starting user copy operation")
            logger.info("Username: %s", config.username)
            logger.info("Source: %s", config.source_host)
            logger.info("Target(s): %s", ",".join(config.target_hosts))

            if config.dry_run:
                logger.warning("DRY RUN MODE - No changes will be made")

            if self.needs_password():
                self.warn_password_prompts()

            self.check_source()
            snapshot = self.inspector.snapshot(config.source_host, config.username)

            for target in config.target_hosts:
                outcome = self.orchestrator.copy_to_target(target, snapshot)
                outcomes.append(outcome)
                if not outcome.succeeded:
                    logger.error("Failed to copy user to %s", target)

            self.report(outcomes)
            logger.info("User copy operation completed")
            return self.exit_code(outcomes)

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            return 130
        except CopyError as exc:
            logger.error(str(exc))
            return 1
        except Exception:
            logger.exception("Unexpected error")
            return 1
