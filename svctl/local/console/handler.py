import logging
from typing import TYPE_CHECKING, Optional
from svctl.log.setup import set_console_level
from svctl.local.console.registry import Arity
from svctl.local.supervisor import log_tail

if TYPE_CHECKING:
    from .process import Ctl

log = logging.getLogger(__name__)

GENERAL_COMMANDS = {
    "show-config": (Arity.NO_ARG, "Show the configuration that would be generated by reconfigure."),
    "reconfigure": (Arity.NO_ARG, "Reconfigure the application."),
    "cleanse": (Arity.OPTIONAL_SERVICE, "Delete *all* {display_name} data, and start from scratch."),
    "uninstall": (Arity.NO_ARG, "Kill all processes and uninstall the process supervisor (data will be preserved)."),
    "help": (Arity.NO_ARG, "Print this help message."),
}

SERVICE_MANAGEMENT_COMMANDS = {
    "service-list": (Arity.NO_ARG, "List all the services (enabled services appear with a *.)"),
    "status": (Arity.OPTIONAL_SERVICE, "Show the status of all the services."),
    "tail": (Arity.OPTIONAL_SERVICE, "Watch the service logs of all enabled services."),
    "start": (Arity.OPTIONAL_SERVICE, "Start services if they are down, and restart them if they stop."),
    "stop": (Arity.OPTIONAL_SERVICE, "Stop the services, and do not restart them."),
    "restart": (Arity.OPTIONAL_SERVICE, "Stop the services if they are running, then start them again."),
    "once": (Arity.OPTIONAL_SERVICE, "Start the services if they are down. Do not restart them if they stop."),
    "hup": (Arity.OPTIONAL_SERVICE, "Send the services a HUP."),
    "term": (Arity.OPTIONAL_SERVICE, "Send the services a TERM."),
    "int": (Arity.OPTIONAL_SERVICE, "Send the services an INT."),
    "kill": (Arity.OPTIONAL_SERVICE, "Send the services a KILL."),
    "graceful-kill": (Arity.OPTIONAL_SERVICE, "Attempt a graceful stop, then SIGKILL the entire process group."),
}

# Command names that differ from the runit verb they send.
SV_VERB_ALIASES = {"int": "interrupt"}


def print_help(ctl: "Ctl", *args: Optional[str]) -> int:
    """Prints every command grouped by category. Always returns 1."""
    print(f"{ctl.program}: command (subcommand)\n", file=ctl.out)
    for name, spec in sorted(ctl.registry.flat_commands().items()):
        print(name, file=ctl.out)
        print(f"  {spec.description}", file=ctl.out)

    for category, commands in ctl.registry.categories():
        # 'service-management' -> 'Service Management'
        title = " ".join(word.capitalize() for word in category.replace("-", " ").split())
        print(f"{title} Commands:\n", file=ctl.out)
        for name, spec in sorted(commands.items()):
            print(f"  {name}", file=ctl.out)
            print(f"    {spec.description}", file=ctl.out)
    return 1


def service_list(ctl: "Ctl", *args: Optional[str]) -> int:
    """Prints each service, marking enabled ones with a '*'."""
    manager = ctl.manager
    for service_name in manager.get_all_services():
        marker = "*" if manager.service_enabled(service_name) else ""
        print(f"{service_name}{marker}", file=ctl.out)
    return 0


def run_sv_command(ctl: "Ctl", command: str, service: Optional[str] = None) -> int:
    """Forwards a supervisor verb to one service, or to every permitted service."""
    return ctl.manager.run_sv_command(SV_VERB_ALIASES.get(command, command), service)


def graceful_kill(ctl: "Ctl", command: str, service: Optional[str] = None) -> int:
    return ctl.manager.graceful_kill(service)


def tail(ctl: "Ctl", command: str, service: Optional[str] = None) -> int:
    return log_tail.follow_log_files(ctl.manager, service, out=ctl.out)


def cleanse(ctl: "Ctl", command: str, confirmation: Optional[str] = None) -> int:
    """Runs the cleanse teardown; 'yes' as the argument skips the countdown."""
    return ctl.manager.cleanse(confirmed=confirmation == "yes")


def uninstall(ctl: "Ctl", *args: Optional[str]) -> int:
    return ctl.manager.uninstall()


def show_config(ctl: "Ctl", *args: Optional[str]) -> int:
    return ctl.manager.show_config()


def reconfigure(ctl: "Ctl", *args: Optional[str]) -> int:
    return ctl.manager.reconfigure(out=ctl.out)


def toggle_verbose_logging(ctl: "Ctl", verbose: bool = True) -> None:
    """Switches verbose output on or off, including DEBUG messages on the console."""
    ctl.settings.VERBOSE = verbose
    set_console_level(logging.DEBUG if verbose else logging.INFO)
    log.debug(f"Verbose output is now {'ON' if verbose else 'OFF'}.")


def register_builtin_commands(ctl: "Ctl", service_commands: bool = True) -> None:
    """
    Registers the built-in commands on a controller.

    :param ctl: The controller to register on.
    :param service_commands: Also register the 'service-management' category.
    """
    general_handlers = {
        "show-config": show_config,
        "reconfigure": reconfigure,
        "cleanse": cleanse,
        "uninstall": uninstall,
        "help": print_help,
    }
    for name, (arity, description) in GENERAL_COMMANDS.items():
        handler = general_handlers[name]
        ctl.add_command_under_category(
            name, "general", description.format(display_name=ctl.settings.DISPLAY_NAME), arity,
            lambda *args, handler=handler: handler(ctl, *args),
        )

    if not service_commands:
        return

    service_handlers = {"service-list": service_list, "tail": tail, "graceful-kill": graceful_kill}
    for name, (arity, description) in SERVICE_MANAGEMENT_COMMANDS.items():
        handler = service_handlers.get(name, run_sv_command)
        ctl.add_command_under_category(
            name, "service-management", description, arity,
            lambda *args, handler=handler: handler(ctl, *args),
        )
