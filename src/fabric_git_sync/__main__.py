"""Entry point when run as ``python -m fabric_git_sync``."""

import sys

from fabric_git_sync.cli import main

if __name__ == "__main__":
    sys.exit(main())
