"""
Platform Utilities Module
Provides centralized platform detection for launching the client binary.
"""

import os
import sys
from pathlib import Path
from enum import Enum, auto

import platformdirs


APP_NAME = "ClientManager"
APP_AUTHOR = "tswow"

# Environment override for the config/log directory (used by tests and portable installs)
CONFIG_DIR_ENV = "CLIENT_MANAGER_HOME"


class Platform(Enum):
    """Supported operating system platforms."""
    WINDOWS = auto()
    LINUX = auto()
    MACOS = auto()
    UNKNOWN = auto()


def get_platform() -> Platform:
    """
    Detect the current operating system.

    Returns:
        Platform enum value for the current OS.
    """
    if sys.platform == 'win32':
        return Platform.WINDOWS
    elif sys.platform == 'linux':
        return Platform.LINUX
    elif sys.platform == 'darwin':
        return Platform.MACOS
    return Platform.UNKNOWN


# Pre-computed constants - computed once at import time
PLATFORM = get_platform()
IS_WINDOWS = PLATFORM == Platform.WINDOWS
IS_LINUX = PLATFORM == Platform.LINUX

# Launcher used to wrap the client on non-native platforms
COMPAT_LAUNCHER = "wine"


def is_native_client_platform() -> bool:
    """
    Check whether the client executable can be started directly.

    The client is a Windows binary; everywhere else it runs under wine.
    """
    return IS_WINDOWS


def get_app_config_dir() -> Path:
    """
    Get the application config directory based on platform.

    - CLIENT_MANAGER_HOME, when set, wins on every platform
    - Windows/macOS: platformdirs (typically AppData/Local/tswow/ClientManager)
    - Linux: ~/.local/share/client-manager (XDG data dir)

    Returns:
        Path to the config directory (created if doesn't exist)
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        config_dir = Path(override)
    elif IS_LINUX:
        config_dir = Path.home() / ".local" / "share" / "client-manager"
    else:
        config_dir = Path(platformdirs.user_config_dir(APP_NAME, APP_AUTHOR))

    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir
