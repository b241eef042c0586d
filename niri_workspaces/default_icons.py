"""Built-in icon table.

Maps lowercase application identifiers to Nerd Font glyphs. The table is
overlaid with the user's ``window-icons`` at startup; user entries win.
Keys must stay lowercase because lookups lowercase the window's app_id.
"""

from typing import Tuple

DEFAULT_ICONS: Tuple[Tuple[str, str], ...] = (
    ("alacritty", ""),
    ("atom", ""),
    ("banshee", ""),
    ("blender", ""),
    ("chromium", ""),
    ("com.mitchellh.ghostty", ""),
    ("cura", ""),
    ("darktable", ""),
    ("discord", ""),
    ("eclipse", ""),
    ("emacs", ""),
    ("eog", ""),
    ("evince", ""),
    ("evolution", ""),
    ("factorio", ""),
    ("feh", ""),
    ("file-roller", ""),
    ("filezilla", ""),
    ("firefox", ""),
    ("firefox-esr", ""),
    ("foot", ""),
    ("gimp", ""),
    ("gimp-2.8", ""),
    ("gnome-control-center", ""),
    ("gnome-terminal-server", ""),
    ("google-chrome", ""),
    ("google-chrome", ""),
    ("gpick", ""),
    ("imv", ""),
    ("insomnia", ""),
    ("java", ""),
    ("jetbrains-idea", ""),
    ("jetbrains-studio", ""),
    ("keepassxc", ""),
    ("keybase", ""),
    ("kicad", ""),
    ("kitty", ""),
    ("libreoffice", ""),
    ("lua5.1", ""),
    ("mpv", ""),
    ("mupdf", ""),
    ("mysql-workbench-bin", ""),
    ("nautilus", ""),
    ("nemo", ""),
    ("openscad", ""),
    ("pavucontrol", ""),
    ("postman", ""),
    ("prusa-slicer", ""),
    ("rhythmbox", ""),
    ("robo3t", ""),
    ("signal", ""),
    ("slack", ""),
    ("slic3r.pl", ""),
    ("spotify", ""),
    ("steam", ""),
    ("subl", ""),
    ("subl3", ""),
    ("sublime_text", ""),
    ("thunar", ""),
    ("thunderbird", ""),
    ("totem", ""),
    ("urxvt", ""),
    ("xfce4-terminal", ""),
    ("xournal", ""),
    ("yelp", ""),
    ("zenity", ""),
    ("zoom", ""),
)
