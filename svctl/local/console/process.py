import os
import sys
import logging
from pathlib import Path
from typing import List, Optional, Sequence, TextIO, Tuple
from svctl.local.console import extensions, handler
from svctl.local.console.registry import Arity, CommandHandler, CommandRegistry, CommandSpec
from svctl.local.errors import ArityViolation, UnknownCommand
from svctl.local.supervisor import ServiceManager

log = logging.getLogger(__name__)

VERBOSE_OPTIONS = ("--verbose", "-v")


class Ctl:
    """
    Resolves a command line against the command registry and runs the
    matching handler. One command is dispatched per process.
    """

    def __init__(self, manager: ServiceManager, service_commands: Optional[bool] = None,
                 program: Optional[str] = None, out: Optional[TextIO] = None) -> None:
        """
        :param manager: The ServiceManager for the product being controlled.
        :param service_commands: Register the service-management commands.
            Defaults to the SERVICE_COMMANDS setting.
        :param program: Program name shown in help; defaults to argv[0].
        :param out: Stream for operator output; stdout when None.
        """
        self.manager = manager
        self.settings = manager.settings
        self.registry = CommandRegistry()
        self.program = program or os.path.basename(sys.argv[0]) or f"{self.settings.NAME}-ctl"
        self.out = out
        if service_commands is None:
            service_commands = self.settings.SERVICE_COMMANDS
        self.service_commands = service_commands
        handler.register_builtin_commands(self, service_commands)

    #* --- Registration ---
    def add_command(self, name: str, description: str, arity: int = Arity.NO_ARG,
                    command_handler: Optional[CommandHandler] = None):
        """
        Registers a command in the flat registry, where it shadows any
        categorised command of the same name. Usable as a decorator when
        `command_handler` is omitted.
        """
        return self._register(name, None, description, arity, command_handler)

    def add_command_under_category(self, name: str, category: str, description: str,
                                   arity: int = Arity.NO_ARG,
                                   command_handler: Optional[CommandHandler] = None):
        """Registers a command under a help category. Usable as a decorator."""
        return self._register(name, category, description, arity, command_handler)

    def _register(self, name: str, category: Optional[str], description: str, arity: int,
                  command_handler: Optional[CommandHandler]):
        if command_handler is not None:
            return self.registry.register(name, category, description, arity, command_handler)

        def decorator(func: CommandHandler) -> CommandHandler:
            self.registry.register(name, category, description, arity, func)
            return func
        return decorator

    def sv_command_handler(self) -> CommandHandler:
        """A handler that forwards its command name as a runit verb, for extension commands."""
        return lambda command, service=None: handler.run_sv_command(self, command, service)

    def get_all_commands_hash(self) -> dict:
        return self.registry.all()

    #* --- Parsing ---
    @staticmethod
    def is_option(arg: Optional[str]) -> bool:
        """Anything starting with '-' is an option."""
        return bool(arg) and arg.startswith("-")

    def parse_options(self, options: Sequence[str]) -> None:
        """Applies the options we know; anything else is ignored so other tools' flags pass through."""
        for option in options:
            if option in VERBOSE_OPTIONS:
                handler.toggle_verbose_logging(self, True)

    def parse_args(self, args: Sequence[str]) -> Tuple[Optional[str], Optional[str], List[str]]:
        """
        Splits a command line into the command, the optional service and the options.

        :param args: Command line tokens without the program name.
        :return: (command, service, options)
        """
        command = args[0] if args else None
        options = list(args[2:])
        second = args[1] if len(args) > 1 else None
        if self.is_option(second):
            options.insert(0, second)
            service = None
        else:
            service = second
        return command, service, options

    def retrieve_command(self, command: Optional[str]) -> Optional[CommandSpec]:
        if command is None:
            return None
        return self.registry.resolve(command)

    def resolve(self, args: Sequence[str]) -> Tuple[CommandSpec, Optional[str], List[str]]:
        """
        Resolves a command line to the spec to run.

        :raises UnknownCommand: If the command is not registered.
        :raises ArityViolation: If extra tokens were given to a command that takes none.
        """
        command, service, options = self.parse_args(args)
        spec = self.retrieve_command(command)
        if spec is None:
            raise UnknownCommand(command or "")
        if len(args) > 1 and not spec.accepts_service:
            raise ArityViolation(spec.name)
        return spec, service, options

    #* --- Dispatch ---
    def _prepend_bin_paths(self) -> None:
        """Makes sure the product's bundled binaries are found first."""
        paths = [str(p) for p in self.settings.bin_paths]
        current = os.environ.get("PATH", "")
        os.environ["PATH"] = os.pathsep.join(paths + ([current] if current else []))

    def run(self, args: Sequence[str]) -> int:
        """
        Dispatches a single command line.

        :param args: Command line tokens without the program name.
        :return: The process exit status.
        """
        self._prepend_bin_paths()
        args = list(args)
        try:
            spec, service, options = self.resolve(args)
        except UnknownCommand as e:
            print("I don't know that command.", file=self.out)
            command, service, _ = self.parse_args(args)
            if len(args) == 2 and service is not None:
                print(f"Did you mean: {self.program} {service} {command}?", file=self.out)
            log.debug(str(e))
            handler.print_help(self)
            return e.exit_status
        except ArityViolation as e:
            print(str(e), file=self.out)
            return e.exit_status

        self.parse_options(options)
        log.debug(f"Executing command: {spec.name}, service: {service}, options: {options}")

        # Handlers only ever see the command and the service.
        actual_args = [spec.name] + ([service] if service is not None else [])
        return spec.handler(*actual_args)

    def load_files(self, path: Path) -> int:
        """Loads extension command files from `path`. Returns how many were loaded."""
        return extensions.load_files(self, path)
