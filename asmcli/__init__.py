"""asmcli: command-line client for the Apple School Manager device API."""

__version__ = "0.1.0"
