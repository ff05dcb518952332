"""Local host detection shared by every stage that branches on locality."""

import socket
from typing import Callable, Set

from usercopy.constants import LOCAL_HOST_ALIASES


def local_hostnames(socket_module=socket) -> Set[str]:
    names = set(LOCAL_HOST_ALIASES)
    for name in (socket_module.gethostname(), socket_module.getfqdn()):
        if name:
            names.add(name)
            names.add(name.split(".", 1)[0])
    return names


def local_matcher(socket_module=socket) -> Callable[[str], bool]:
    """Resolves this machine's names once; getfqdn may hit DNS."""
    names = frozenset(local_hostnames(socket_module))
    return names.__contains__
