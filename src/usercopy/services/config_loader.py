"""Configuration loader for usercopy."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from usercopy.errors import CopyError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "username",
        "source",
        "targets",
        "key",
        "port",
        "dry_run",
        "verbose",
        "copy_acls",
        "log_file",
        "on_conflict",
        "conflict_decisions",
        "fail_on_target_error",
        "connect_timeout",
        "admin_user",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise CopyError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise CopyError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise CopyError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise CopyError(f"Unknown configuration keys: {unknown_list}")

        decisions = parsed.get("conflict_decisions")
        if decisions is not None and not isinstance(decisions, dict):
            raise CopyError("`conflict_decisions` must map target hostnames to skip/overwrite.")

        return parsed
