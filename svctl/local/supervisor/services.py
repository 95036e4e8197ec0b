"""
Service discovery over the runit supervision tree and the policy deciding
which services take part in a command broadcast to all of them.
"""
import logging
from pathlib import Path
from typing import AbstractSet, List, TYPE_CHECKING

if TYPE_CHECKING:
    from .persistence import RunningConfig

log = logging.getLogger(__name__)


def list_services(sv_path: Path) -> List[str]:
    """
    Lists the services defined under the supervision root.

    :param sv_path: The `<base>/sv` directory.
    :return: Service names in lexicographic order; empty if the tree is missing.
    """
    try:
        return sorted(entry.name for entry in sv_path.iterdir())
    except (FileNotFoundError, NotADirectoryError):
        log.debug(f"Supervision root {sv_path} does not exist.")
        return []


def is_enabled(service_path: Path, service: str) -> bool:
    """A service is enabled iff its activation symlink exists under `<base>/service`."""
    return (service_path / service).is_symlink()


def permitted(command: str, service: str, config: "RunningConfig",
              singleton_services: AbstractSet[str] = frozenset()) -> bool:
    """
    Decides whether a service takes part in a command broadcast to all services.

    The rules are checked in order; the first two override the status rule.

    :param command: The supervisor verb being broadcast.
    :param service: The candidate service.
    :param config: The running config holding removed/hidden services.
    :param singleton_services: Services that only answer 'status' in a broadcast.
    :return: True if the command should be run for this service.
    """
    # Removed services linger until stopped; they must not show up or start again.
    if service in config.removed_services:
        return command == "stop"

    if service in singleton_services:
        return command == "status"

    if command == "status":
        return service not in config.hidden_services

    return True
