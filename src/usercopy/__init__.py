"""
usercopy - Copy Unix user accounts between servers over SSH
"""

__version__ = "1.0.0"

from .core import UserCopier
from .errors import CopyError

__all__ = ["UserCopier", "CopyError"]
