"""
This module initializes the console package, exposing the command dispatcher,
the command registry types and the help printer.
"""

from .process import Ctl
from .registry import Arity, CommandRegistry, CommandSpec
from .handler import print_help

__all__ = ["Ctl", "Arity", "CommandRegistry", "CommandSpec", "print_help"]
