"""Account creation on target hosts."""

import shlex
from typing import List, Optional

from usercopy.models import AccountRecord, RunConfiguration, ShadowRecord, SourceSnapshot, StepResult


class AccountProvisioner:
    """Creates the account on a target with the source uid, gid, home, shell and comment."""

    def __init__(self, executor, logger, console):
        self.executor = executor
        self.logger = logger
        self.console = console

    @staticmethod
    def primary_group_name(snapshot: SourceSnapshot) -> str:
        return snapshot.groups.first or snapshot.account.name

    @staticmethod
    def describe_account(account: AccountRecord) -> List[str]:
        return [
            f"  Username: {account.name}",
            f"  UID: {account.uid}",
            f"  GID: {account.gid}",
            f"  Home: {account.home}",
            f"  Shell: {account.shell}",
            f"  GECOS: {account.gecos}",
        ]

    def build_provision_script(
        self,
        account: AccountRecord,
        shadow: Optional[ShadowRecord],
        group_name: str,
    ) -> str:
        gid = str(account.gid)
        name = shlex.quote(account.name)
        lines = [
            "set -e",
            f"if ! getent group {gid} >/dev/null 2>&1; then "
            f"groupadd -g {gid} {shlex.quote(group_name)}; fi",
            " ".join(
                [
                    "useradd",
                    "-u",
                    str(account.uid),
                    "-g",
                    gid,
                    "-d",
                    shlex.quote(account.home),
                    "-s",
                    shlex.quote(account.shell),
                    "-c",
                    shlex.quote(account.gecos),
                    name,
                ]
            ),
        ]
        if shadow is not None and shadow.is_usable:
            lines.append(f"usermod -p {shlex.quote(shadow.password_hash)} {name}")
        return "\n".join(lines)

    def purge(self, target: str, username: str, config: RunConfiguration) -> StepResult:
        if config.dry_run:
            self.logger.warning("DRY RUN: Would delete existing user '%s' on %s", username, target)
            return StepResult(ok=True, skipped=True)

        result = self.executor.execute(target, f"userdel -r {shlex.quote(username)}")
        if not result.ok:
            self.logger.warning(
                "Could not fully remove existing user '%s' on %s: %s",
                username,
                target,
                result.error or f"exit status {result.status}",
            )
            return StepResult(ok=False, message=result.error)
        return StepResult(ok=True)

    def provision(self, target: str, snapshot: SourceSnapshot, config: RunConfiguration) -> StepResult:
        account = snapshot.account
        self.logger.info("Creating user '%s' on %s", account.name, target)

        if config.dry_run:
            self.logger.warning("DRY RUN: Would create user with following parameters:")
            for line in self.describe_account(account):
                self.console.print(line, markup=False, highlight=False)
            return StepResult(ok=True, skipped=True)

        if snapshot.shadow is None or not snapshot.shadow.is_usable:
            self.logger.debug("No usable password hash for '%s'; leaving password unset", account.name)

        script = self.build_provision_script(
            account,
            snapshot.shadow,
            self.primary_group_name(snapshot),
        )
        result = self.executor.execute(target, script)
        if not result.ok:
            message = result.error or f"exit status {result.status}"
            self.logger.error("Failed to create user '%s' on %s: %s", account.name, target, message)
            return StepResult(ok=False, message=message)

        self.logger.info("User '%s' created successfully on %s", account.name, target)
        return StepResult(ok=True)
