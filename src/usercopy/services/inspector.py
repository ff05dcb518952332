"""Account database lookups for usercopy."""

import shlex
from typing import Optional

from usercopy.errors import CopyError
from usercopy.errors_catalog import actionable_error
from usercopy.models import AccountRecord, GroupMembershipSet, ShadowRecord, SourceSnapshot

PASSWD_FIELDS = 7


def _first_line(output: str) -> str:
    for line in output.splitlines():
        if line.strip():
            return line.strip()
    return ""


def parse_passwd_entry(entry: str) -> Optional[AccountRecord]:
    """Parses a `getent passwd` line into an AccountRecord.

    Returns None for empty output; raises CopyError when the line does not
    carry the seven positional fields or numeric ids.
    """
    line = _first_line(entry)
    if not line:
        return None

    fields = line.split(":")
    if len(fields) < PASSWD_FIELDS:
        raise CopyError(
            actionable_error("malformed_passwd_entry", username=fields[0], entry=line)
        )

    name, password, uid, gid, gecos, home, shell = fields[:PASSWD_FIELDS]
    try:
        return AccountRecord(
            name=name,
            password=password,
            uid=int(uid),
            gid=int(gid),
            gecos=gecos,
            home=home,
            shell=shell,
        )
    except ValueError as exc:
        raise CopyError(
            actionable_error("malformed_passwd_entry", username=name, entry=line)
        ) from exc


def parse_shadow_entry(entry: str) -> Optional[ShadowRecord]:
    line = _first_line(entry)
    fields = line.split(":")
    if len(fields) < 2:
        return None
    return ShadowRecord(name=fields[0], password_hash=fields[1])


def parse_groups_output(output: str) -> GroupMembershipSet:
    """Parses `groups <user>` output, with or without the `user : ` prefix."""
    line = _first_line(output)
    if ":" in line:
        line = line.split(":", 1)[1]
    return GroupMembershipSet(groups=tuple(line.split()))


class AccountInspector:
    """Queries passwd, shadow and group databases on a host."""

    def __init__(self, executor, logger):
        self.executor = executor
        self.logger = logger

    def fetch_account(self, host: str, username: str) -> Optional[AccountRecord]:
        result = self.executor.execute(host, f"getent passwd {shlex.quote(username)}")
        if not result.ok:
            return None
        return parse_passwd_entry(result.output)

    def fetch_shadow(self, host: str, username: str) -> Optional[ShadowRecord]:
        result = self.executor.execute(host, f"getent shadow {shlex.quote(username)}")
        if not result.ok:
            self.logger.debug("No shadow entry readable for '%s' on %s", username, host)
            return None
        return parse_shadow_entry(result.output)

    def fetch_groups(self, host: str, username: str) -> GroupMembershipSet:
        result = self.executor.execute(host, f"groups {shlex.quote(username)}")
        if not result.ok:
            self.logger.debug("No group memberships readable for '%s' on %s", username, host)
            return GroupMembershipSet()
        return parse_groups_output(result.output)

    def account_exists(self, host: str, username: str) -> bool:
        self.logger.debug("Checking if user '%s' exists on %s", username, host)
        return self.executor.execute(host, f"id {shlex.quote(username)}").ok

    def snapshot(self, host: str, username: str) -> SourceSnapshot:
        self.logger.debug("Getting user information for '%s' from %s", username, host)

        account = self.fetch_account(host, username)
        if account is None:
            raise CopyError(actionable_error("source_account_not_found", username=username, host=host))

        snapshot = SourceSnapshot(
            account=account,
            shadow=self.fetch_shadow(host, username),
            groups=self.fetch_groups(host, username),
        )
        self.logger.debug("User info retrieved successfully")
        return snapshot
