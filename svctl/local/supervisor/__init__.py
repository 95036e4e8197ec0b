"""
The Supervisor package.
Drives the runit supervision tree of one installed product.

This package contains the central ServiceManager class and its helper modules,
which together handle service discovery, broadcast filtering, per-service
supervisor commands, process group escalation and teardown.
"""
from .supervisor import ServiceManager
from .persistence import RunningConfig

__all__ = ['ServiceManager', 'RunningConfig']
