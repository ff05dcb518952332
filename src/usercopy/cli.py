import logging
import os

import click
from rich.logging import RichHandler

from .constants import (
    ADMIN_USER,
    CONNECT_TIMEOUT_SECONDS,
    DEFAULT_CONFIG_FILE,
    DEFAULT_SSH_KEY,
    DEFAULT_SSH_PORT,
)
from .core import UserCopier, parse_target_list
from .errors import CopyError
from .errors_catalog import actionable_error
from .models import RunConfiguration
from .services.config_loader import ConfigLoader
from .services.conflict import POLICY_NAMES, parse_decisions


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


def _int_option(value, key):
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise click.ClickException(f"Invalid {key} value: {value!r}. Expected a whole number.") from exc


def _default_ssh_key():
    path = os.path.expanduser(DEFAULT_SSH_KEY)
    return path if os.path.isfile(path) else None


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=True, show_path=False)],
)

EPILOG = """\b
Examples:
  usercopy -u testuser -s test-server.local -t prod-server.local
  usercopy -u developer -s dev.local -t "prod1.local,prod2.local" -d
  usercopy -u admin -s source.local -t target.local -k ~/.ssh/custom_key -p 2222
  usercopy -u webuser -s localhost -t "prod1,prod2,prod3" --no-acl -v
"""


@click.command(context_settings={"help_option_names": ["-h", "--help"]}, epilog=EPILOG)
@click.option("-u", "--username", required=False, help="Username to copy")
@click.option("-s", "--source", required=False, help="Source server hostname/IP (localhost runs locally)")
@click.option("-t", "--target", required=False, help="Target server(s), comma separated for multiple")
@click.option(
    "-k",
    "--key",
    required=False,
    type=click.Path(dir_okay=False),
    help=f"Path to SSH private key (default: {DEFAULT_SSH_KEY} if present)",
)
@click.option("-p", "--port", required=False, type=int, default=None, help="SSH port (default: 22)")
@click.option("-d", "--dry-run", is_flag=True, default=None, help="Show what would be done without executing")
@click.option("-v", "--verbose", is_flag=True, default=None, help="Verbose output")
@click.option("--no-acl", is_flag=True, default=None, help="Skip copying ACLs (Access Control Lists)")
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option("--log-file", type=click.Path(), help="Path to log file")
@click.option(
    "--on-conflict",
    required=False,
    type=click.Choice(POLICY_NAMES),
    default=None,
    help="What to do when the user already exists on a target (default: prompt).",
)
@click.option(
    "--fail-on-target-error",
    is_flag=True,
    default=None,
    help="Exit with status 2 when any target could not be copied.",
)
def main(
    username,
    source,
    target,
    key,
    port,
    dry_run,
    verbose,
    no_acl,
    config,
    log_file,
    on_conflict,
    fail_on_target_error,
):
    """Copy a user account from a source server to one or more target servers."""
    logger = logging.getLogger("usercopy")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)
    except CopyError as exc:
        raise click.ClickException(str(exc)) from exc

    username = _resolve_option(username, config_values, "username")
    source = _resolve_option(source, config_values, "source")
    target = _resolve_option(target, config_values, "targets")
    key = _resolve_option(key, config_values, "key")
    key = os.path.expanduser(str(key)) if key else _default_ssh_key()
    port = _int_option(_resolve_option(port, config_values, "port", default=DEFAULT_SSH_PORT), "port")
    dry_run = bool(_resolve_option(dry_run, config_values, "dry_run", default=False))
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    copy_acls = False if no_acl else bool(config_values.get("copy_acls", True))
    log_file = _resolve_option(log_file, config_values, "log_file")
    on_conflict = _resolve_option(on_conflict, config_values, "on_conflict", default="prompt")
    fail_on_target_error = bool(
        _resolve_option(fail_on_target_error, config_values, "fail_on_target_error", default=False)
    )
    connect_timeout = _int_option(
        config_values.get("connect_timeout", CONNECT_TIMEOUT_SECONDS), "connect_timeout"
    )
    admin_user = str(config_values.get("admin_user", ADMIN_USER))

    for value, option, config_key in (
        (username, "-u", "username"),
        (source, "-s", "source"),
        (target, "-t", "targets"),
    ):
        if not value:
            raise click.UsageError(
                actionable_error("missing_required_option", option=option, key=config_key)
            )

    if on_conflict not in POLICY_NAMES:
        raise click.ClickException(
            f"Invalid on_conflict value: {on_conflict}. Use one of: {', '.join(POLICY_NAMES)}."
        )

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    try:
        run_config = RunConfiguration(
            username=str(username),
            source_host=str(source).strip(),
            target_hosts=parse_target_list(target),
            ssh_key=key,
            port=port,
            dry_run=dry_run,
            verbose=verbose,
            copy_acls=copy_acls,
            admin_user=admin_user,
            connect_timeout=connect_timeout,
            on_conflict=on_conflict,
            conflict_decisions=parse_decisions(config_values.get("conflict_decisions")),
            fail_on_target_error=fail_on_target_error,
        )
    except CopyError as exc:
        raise click.ClickException(str(exc)) from exc

    copier = UserCopier(config=run_config)
    raise SystemExit(copier.run())


if __name__ == "__main__":
    main()
