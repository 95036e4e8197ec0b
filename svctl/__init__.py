"""
svctl: a command dispatcher and lifecycle controller for a product's runit
supervision tree.
"""

__version__ = "1.0.0"
