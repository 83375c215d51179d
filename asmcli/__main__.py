"""Main entry point when executing asmcli as a package.

This allows running the package using python -m asmcli.
"""

from asmcli.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
