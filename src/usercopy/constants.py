"""Shared constants for usercopy."""

ADMIN_USER = "root"
DEFAULT_SSH_PORT = 22
DEFAULT_SSH_KEY = "~/.ssh/id_rsa"
DEFAULT_CONFIG_FILE = ".usercopy.yml"
CONNECT_TIMEOUT_SECONDS = 10

LOCAL_HOST_ALIASES = ("localhost",)

# "!!" is what RedHat-family useradd writes for an account without a password.
LOCK_MARKERS = ("!", "!!", "*")

SSH_DIR_NAME = ".ssh"
SSH_DIR_MODE = 0o700
PRIVATE_FILE_MODE = 0o600
PUBLIC_KEY_MODE = 0o644
PUBLIC_KEY_SUFFIX = ".pub"

COMMAND_NOT_FOUND_STATUS = 127
TIMEOUT_STATUS = 124
