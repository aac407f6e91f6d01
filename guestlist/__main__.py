"""Main entry point when executing guestlist as a package.

This allows running the package using python -m guestlist.
"""

from guestlist.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
