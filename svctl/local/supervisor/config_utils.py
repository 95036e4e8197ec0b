import logging
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, TextIO

if TYPE_CHECKING:
    from .supervisor import ServiceManager

log = logging.getLogger(__name__)


def chef_client_args(manager: "ServiceManager", json_attribs: str, *extra: str) -> List[str]:
    """
    Builds the local-mode chef-client invocation that renders the product's config.

    :param manager: The ServiceManager instance.
    :param json_attribs: The attributes file under `embedded/cookbooks`.
    :param extra: Additional chef-client arguments.
    :return: The argument vector.
    """
    base = Path(manager.settings.BASE_PATH)
    cookbooks = base / "embedded" / "cookbooks"
    return [
        str(base / "embedded" / "bin" / "chef-client"), "-z",
        "-c", str(cookbooks / "solo.rb"),
        "-j", str(cookbooks / json_attribs),
        *extra,
    ]


def show_config(manager: "ServiceManager") -> int:
    """Prints the configuration a reconfigure would generate. Returns 0 on success, 1 otherwise."""
    status = manager.run_command(chef_client_args(manager, "show-config.json", "-l", "fatal"))
    return 0 if status == 0 else 1


def reconfigure(manager: "ServiceManager", out: Optional[TextIO] = None) -> int:
    """
    Re-renders the product's configuration and restarts what changed.

    :param manager: The ServiceManager instance.
    :param out: Stream for the success message; stdout when None.
    :return: 0 on success, 1 otherwise.
    """
    status = manager.run_command(chef_client_args(manager, "dna.json"))
    if status != 0:
        log.error(f"{manager.settings.DISPLAY_NAME} reconfigure failed with exit status {status}.")
        return 1

    print(f"{manager.settings.DISPLAY_NAME} Reconfigured!", file=out)
    return 0
