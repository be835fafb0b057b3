"""Local dev entrypoint: serve the API from the source tree with auto-reload."""

import sys
from pathlib import Path

if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

    from contentforge.cli.main import cli

    cli(["serve", "--reload", *sys.argv[1:]])
