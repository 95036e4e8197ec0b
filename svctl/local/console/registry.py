import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, Optional, Tuple

log = logging.getLogger(__name__)

# handler(command, service=None) -> exit status
CommandHandler = Callable[..., int]


class Arity(enum.IntEnum):
    """How many positional tokens a command accepts (its name, plus an optional service)."""

    NO_ARG = 1
    OPTIONAL_SERVICE = 2


@dataclass(frozen=True)
class CommandSpec:
    """A registered command."""

    name: str
    category: Optional[str]
    description: str
    arity: Arity
    handler: CommandHandler = field(compare=False, repr=False)

    @property
    def accepts_service(self) -> bool:
        return self.arity == Arity.OPTIONAL_SERVICE


class CommandRegistry:
    """
    Maps command names to their specs.

    Commands live either in the flat (uncategorised) registry or under a
    category. The flat registry always takes precedence: on lookup, and when
    both registries are merged for listing.
    """

    def __init__(self) -> None:
        self._flat: Dict[str, CommandSpec] = {}
        self._categories: Dict[str, Dict[str, CommandSpec]] = {}

    def register(self, name: str, category: Optional[str], description: str,
                 arity: int, handler: CommandHandler) -> CommandSpec:
        """
        Adds a command, replacing any command of the same name in the same registry.

        :param name: The command name as typed on the command line.
        :param category: The help category, or None for the flat registry.
        :param description: One line of help text.
        :param arity: Arity.NO_ARG or Arity.OPTIONAL_SERVICE (1 or 2).
        :param handler: Called as handler(command, service=None); returns the exit status.
        :return: The registered spec.
        """
        spec = CommandSpec(name, category, description, Arity(arity), handler)
        target = self._flat if category is None else self._categories.setdefault(category, {})
        if name in target:
            log.debug(f"Command '{name}' re-registered; replacing the previous definition.")
        target[name] = spec
        return spec

    def resolve(self, name: str) -> Optional[CommandSpec]:
        """Looks a command up, flat registry first. Returns None if unknown."""
        if name in self._flat:
            return self._flat[name]

        found = None
        for commands in self._categories.values():
            if name in commands:
                found = commands[name]
        return found

    def all(self) -> Dict[str, CommandSpec]:
        """Every command by name, categories merged in order and overlaid by the flat registry."""
        merged: Dict[str, CommandSpec] = {}
        for commands in self._categories.values():
            merged.update(commands)
        merged.update(self._flat)
        return merged

    def flat_commands(self) -> Dict[str, CommandSpec]:
        return dict(self._flat)

    def categories(self) -> Iterator[Tuple[str, Dict[str, CommandSpec]]]:
        for category, commands in self._categories.items():
            yield category, dict(commands)

    def __len__(self) -> int:
        return len(self.all())
