"""
Local package for svctl.

This package provides the per-product settings object, the controller's
exceptions, the supervisor layer and the command console.
"""

from .config import CtlSettings

__all__ = ["CtlSettings"]
