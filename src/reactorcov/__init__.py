"""reactorcov - aggregate code coverage across the modules of a multi-module build."""

__version__ = "0.1.0"
