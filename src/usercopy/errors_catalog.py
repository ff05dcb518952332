"""Actionable error catalog for usercopy."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "missing_required_option": {
        "what": "Missing required option '{option}'.",
        "next": "Pass it on the command line or set `{key}` in the config file.",
    },
    "invalid_target_list": {
        "what": "Target server list is empty: '{value}'.",
        "next": "Provide one or more comma-separated hostnames with `-t`.",
    },
    "source_unreachable": {
        "what": "Cannot connect to source server: {host}",
        "next": "Check SSH access as {admin_user} on port {port} and retry.",
    },
    "source_account_not_found": {
        "what": "User '{username}' not found on source server {host}",
        "next": "Check the username with `getent passwd {username}` on the source host.",
    },
    "malformed_passwd_entry": {
        "what": "Malformed passwd entry for '{username}': {entry}",
        "next": "Inspect the account database on the source host.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
