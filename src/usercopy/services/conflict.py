"""Policies deciding what to do when the account already exists on a target."""

import logging
from typing import Any, Callable, Dict, Mapping, Optional

import click

from usercopy.errors import CopyError
from usercopy.models import ConflictDecision

logger = logging.getLogger("usercopy")

ConflictPolicy = Callable[[str, str], ConflictDecision]

POLICY_NAMES = ("prompt", "skip", "overwrite")


def parse_decisions(raw: Optional[Mapping[str, Any]]) -> Dict[str, ConflictDecision]:
    decisions: Dict[str, ConflictDecision] = {}
    for target, value in (raw or {}).items():
        try:
            decisions[str(target).strip()] = ConflictDecision(str(value).strip().lower())
        except ValueError as exc:
            raise CopyError(
                f"Invalid conflict decision for {target}: {value!r}. Use 'skip' or 'overwrite'."
            ) from exc
    return decisions


def interactive_policy(target: str, username: str, getchar=click.getchar) -> ConflictDecision:
    """Asks the operator with a single keypress; anything but y/Y means skip."""
    click.echo("Overwrite existing user? (y/N): ", nl=False)
    try:
        answer = getchar()
    except (EOFError, OSError) as exc:
        click.echo()
        logger.warning("No answer could be read for %s (%s); keeping existing user", target, exc)
        return ConflictDecision.SKIP
    click.echo()
    if answer.lower() == "y":
        return ConflictDecision.OVERWRITE
    return ConflictDecision.SKIP


def fixed_policy(decision: ConflictDecision) -> ConflictPolicy:
    def policy(_target: str, _username: str) -> ConflictDecision:
        return decision

    return policy


def mapping_policy(
    decisions: Mapping[str, ConflictDecision],
    fallback: ConflictPolicy,
) -> ConflictPolicy:
    def policy(target: str, username: str) -> ConflictDecision:
        if target in decisions:
            return decisions[target]
        return fallback(target, username)

    return policy


def build_policy(
    name: str,
    decisions: Optional[Mapping[str, ConflictDecision]] = None,
) -> ConflictPolicy:
    if name == "prompt":
        base = interactive_policy
    elif name in (ConflictDecision.SKIP.value, ConflictDecision.OVERWRITE.value):
        base = fixed_policy(ConflictDecision(name))
    else:
        raise ValueError(f"Unknown conflict policy: {name}")

    if decisions:
        return mapping_policy(decisions, base)
    return base
