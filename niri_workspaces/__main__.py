"""Allow ``python -m niri_workspaces``."""

from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
