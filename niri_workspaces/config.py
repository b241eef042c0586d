"""Configuration loading and merging.

The configuration document is JSON and uses the same keys as the waybar
module it replaces::

    {
        "window-icons": {"firefox": "", "org.gnome.nautilus": ""},
        "window-icon-default": "",
        "window-icon-format": {"focused": "<b>{icon}</b>", "urgent": "<span color='red'>{icon}</span>"},
        "reconnect": {"enabled": false}
    }

Every field is optional. ``Config.from_user`` overlays the user's icons on the
built-in table and fills in default formats; the result is immutable so the
sync worker can hold it without any locking.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .default_icons import DEFAULT_ICONS

logger = logging.getLogger(__name__)

ICON_PLACEHOLDER = "{icon}"
DEFAULT_FORMAT = ICON_PLACEHOLDER
DEFAULT_FOCUSED_FORMAT = ICON_PLACEHOLDER
DEFAULT_URGENT_FORMAT = ICON_PLACEHOLDER

CONFIG_FILENAME = "config.json"


def default_config_path() -> Path:
    """Return ``$XDG_CONFIG_HOME/niri-workspaces/config.json`` (or ~/.config)."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(config_home) if config_home else Path.home() / ".config"
    return base / "niri-workspaces" / CONFIG_FILENAME


# ============================================================================
# User-facing document
# ============================================================================


class UserWindowIconFormats(BaseModel):
    """Optional per-state icon templates."""

    model_config = ConfigDict(extra="ignore")

    focused: Optional[str] = Field(default=None, description="Template for the focused window")
    urgent: Optional[str] = Field(default=None, description="Template for urgent windows")
    default: Optional[str] = Field(default=None, description="Template for all other windows")


class ReconnectPolicy(BaseModel):
    """What the sync worker does after a connection or protocol failure.

    Disabled by default: the worker stops and the bar keeps its last output,
    leaving restarts to the supervisor (systemd, the bar itself).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    enabled: bool = False
    initial_delay: float = Field(default=0.1, gt=0, alias="initial-delay", description="Seconds")
    max_delay: float = Field(default=5.0, gt=0, alias="max-delay", description="Seconds")
    max_attempts: int = Field(default=10, ge=1, alias="max-attempts")

    @model_validator(mode="after")
    def _check_delays(self) -> "ReconnectPolicy":
        if self.max_delay < self.initial_delay:
            raise ValueError("max-delay must not be smaller than initial-delay")
        return self


class UserConfig(BaseModel):
    """The configuration document as written by the user."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    window_icons: Optional[Dict[str, str]] = Field(default=None, alias="window-icons")
    window_icon_default: Optional[str] = Field(default=None, alias="window-icon-default")
    window_icon_formats: Optional[UserWindowIconFormats] = Field(default=None, alias="window-icon-format")
    reconnect: ReconnectPolicy = Field(default_factory=ReconnectPolicy)


# ============================================================================
# Effective configuration
# ============================================================================


@dataclass(frozen=True)
class WindowIconFormats:
    """Effective icon templates, one per window state."""

    focused: str = DEFAULT_FOCUSED_FORMAT
    urgent: str = DEFAULT_URGENT_FORMAT
    default: str = DEFAULT_FORMAT

    @classmethod
    def from_user(cls, user_formats: Optional[UserWindowIconFormats]) -> "WindowIconFormats":
        if user_formats is None:
            return cls()
        validate_formats(user_formats)
        return cls(
            focused=user_formats.focused if user_formats.focused is not None else DEFAULT_FOCUSED_FORMAT,
            urgent=user_formats.urgent if user_formats.urgent is not None else DEFAULT_URGENT_FORMAT,
            default=user_formats.default if user_formats.default is not None else DEFAULT_FORMAT,
        )


def validate_formats(user_formats: UserWindowIconFormats) -> int:
    """Warn about templates that lack the ``{icon}`` placeholder.

    Such templates are still used verbatim, so the icon never shows up for
    that window state.

    Returns:
        Number of templates that failed validation
    """
    problems = 0
    for name in ("focused", "urgent", "default"):
        template = getattr(user_formats, name)
        if template is not None and ICON_PLACEHOLDER not in template:
            logger.warning(
                f"window-icon-format.{name} does not contain {ICON_PLACEHOLDER!r}; "
                f"template {template!r} will be used verbatim"
            )
            problems += 1
    return problems


def merge_icons(user_icons: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Overlay user icons on the built-in table.

    Later built-in entries win over earlier ones, user entries win over all
    built-ins. User keys are stored as given: lookups always lowercase the
    app_id, so a key with uppercase letters can never match.
    """
    icons: Dict[str, str] = dict(DEFAULT_ICONS)
    if user_icons:
        for app_id in user_icons:
            if app_id != app_id.lower():
                logger.warning(
                    f"window-icons key {app_id!r} is not lowercase and will never match; "
                    f"use {app_id.lower()!r}"
                )
        icons.update(user_icons)
    return icons


@dataclass(frozen=True)
class Config:
    """Effective configuration shared read-only by the sync worker."""

    window_icon_default: str = ""
    window_icon_formats: WindowIconFormats = field(default_factory=WindowIconFormats)
    # Merged icons: built-in icons + user icons (user icons take precedence)
    window_icons: Mapping[str, str] = field(default_factory=lambda: MappingProxyType(merge_icons()))
    reconnect: ReconnectPolicy = field(default_factory=ReconnectPolicy)

    @classmethod
    def from_user(cls, user_config: UserConfig) -> "Config":
        return cls(
            window_icon_default=user_config.window_icon_default or "",
            window_icon_formats=WindowIconFormats.from_user(user_config.window_icon_formats),
            window_icons=MappingProxyType(merge_icons(user_config.window_icons)),
            reconnect=user_config.reconnect,
        )


def load_user_config(config_file: Path) -> UserConfig:
    """Read the configuration document.

    A missing file yields an empty document. Unreadable or invalid files are
    logged and also yield an empty document; configuration never stops the
    bar from starting.
    """
    if not config_file.exists():
        logger.debug(f"No config file at {config_file}, using defaults")
        return UserConfig()

    try:
        with open(config_file, encoding="utf-8") as f:
            data = json.load(f)
        user_config = UserConfig.model_validate(data)
        logger.info(f"Loaded configuration from {config_file}")
        return user_config
    except ValidationError as e:
        logger.error(f"Invalid configuration in {config_file}: {e}")
    except (OSError, ValueError) as e:
        # ValueError covers JSONDecodeError and UnicodeDecodeError; must follow ValidationError
        logger.error(f"Failed to read config file {config_file}: {e}")
    return UserConfig()


def load_config(config_file: Optional[Path] = None) -> Config:
    """Load and merge the configuration into an effective ``Config``."""
    return Config.from_user(load_user_config(config_file or default_config_path()))
