"""
.. include:: ../README.md
"""

__all__ = [
    "reference",
    "tags",
    "registry",
    "resolver",
    "orchestrator",
    "values",
    "dockerfile",
    "workflow",
    "config",
    "exceptions",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
