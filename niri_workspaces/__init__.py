"""niri workspaces for status bars.

Keeps a per-workspace view of niri's windows in sync over niri's IPC socket:
- one label per workspace, annotated with the icons of its windows
- focused/urgent/active state for workspaces and windows
- click-to-focus through short-lived IPC connections

Output formats cover eww (json, yuck) and i3bar-protocol bars.
"""

__version__ = "0.1.0"
