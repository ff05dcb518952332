"""Shared domain models for usercopy."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from .constants import (
    ADMIN_USER,
    CONNECT_TIMEOUT_SECONDS,
    DEFAULT_SSH_PORT,
    LOCK_MARKERS,
    SSH_DIR_NAME,
)


@dataclass(frozen=True)
class AccountRecord:
    """One passwd database entry."""

    name: str
    password: str
    uid: int
    gid: int
    gecos: str
    home: str
    shell: str

    @property
    def ssh_dir(self) -> str:
        return f"{self.home.rstrip('/')}/{SSH_DIR_NAME}"


@dataclass(frozen=True)
class ShadowRecord:
    """Shadow entry; aging fields are not kept."""

    name: str
    password_hash: str

    @property
    def is_usable(self) -> bool:
        return bool(self.password_hash) and self.password_hash not in LOCK_MARKERS


@dataclass(frozen=True)
class GroupMembershipSet:
    """Group names reported for the account, in source order."""

    groups: Tuple[str, ...] = ()

    @property
    def first(self) -> Optional[str]:
        return self.groups[0] if self.groups else None

    def secondary_for(self, username: str) -> Tuple[str, ...]:
        return tuple(group for group in self.groups if group != username)


@dataclass(frozen=True)
class SourceSnapshot:
    """Account state captured once from the source host and reused for every target."""

    account: AccountRecord
    shadow: Optional[ShadowRecord]
    groups: GroupMembershipSet


class ConflictDecision(str, Enum):
    SKIP = "skip"
    OVERWRITE = "overwrite"


@dataclass(frozen=True)
class RunConfiguration:
    """Invocation settings, built once and read-only afterwards."""

    username: str
    source_host: str
    target_hosts: Tuple[str, ...]
    ssh_key: Optional[str] = None
    port: int = DEFAULT_SSH_PORT
    dry_run: bool = False
    verbose: bool = False
    copy_acls: bool = True
    admin_user: str = ADMIN_USER
    connect_timeout: int = CONNECT_TIMEOUT_SECONDS
    on_conflict: str = "prompt"
    conflict_decisions: Dict[str, ConflictDecision] = field(default_factory=dict)
    fail_on_target_error: bool = False


class Stage(str, Enum):
    CONNECTIVITY_CHECK = "connectivity_check"
    CONFLICT_CHECK = "conflict_check"
    PROVISIONED = "provisioned"
    HOME_COPIED = "home_copied"
    KEYS_COPIED = "keys_copied"
    GROUPS_SYNCED = "groups_synced"
    DONE = "done"


@dataclass(frozen=True)
class CommandResult:
    output: str
    status: int
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.status == 0


@dataclass(frozen=True)
class PipelineResult:
    producer_status: int
    consumer_status: int
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.producer_status == 0 and self.consumer_status == 0


@dataclass(frozen=True)
class StepResult:
    ok: bool
    message: str = ""
    skipped: bool = False


@dataclass(frozen=True)
class PerTargetOutcome:
    target: str
    succeeded: bool
    failed_stage: Optional[Stage] = None
    skipped: bool = False
    completed_stages: Tuple[Stage, ...] = ()
    degraded_stages: Tuple[Stage, ...] = ()
