"""Domain errors for usercopy."""


class CopyError(RuntimeError):
    """Raised when the copy run cannot continue safely."""
