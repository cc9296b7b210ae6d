"""
reviewflow - review workflow enforcement

Resolves the effective review workflow for a change from the workflows attached
to the projects and branches it touches, and gates submit and shelve events
against it.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
