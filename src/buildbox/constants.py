"""Constants module for buildbox.

Shared names, sentinels and environment keys are defined here (SSOT).
"""

from __future__ import annotations

PROG_NAME = "buildbox"

# === Config Sentinels ===
NOT_AVAILABLE = "NA"  # Legacy "unset" marker accepted in JSON files
DEFAULT_CONFIG_NAME = "default"

# === Workspace Layout ===
SETTINGS_FILE = "buildbox.json"
DEFAULT_CONFIGS_DIR = "configs"
DEFAULT_BUILDS_DIR = "builds"

# === Derived Environment (highest priority for child processes) ===
ENV_WORKSPACE_DIR = "BUILDBOX_WORKSPACE_DIR"
ENV_BUILD_CONFIG = "BUILDBOX_BUILD_CONFIG"
ENV_PRODUCT_NAME = "BUILDBOX_PRODUCT_NAME"
ENV_BUILD_VARIANT = "BUILDBOX_BUILD_VARIANT"
ENV_ENV_TYPE = "BUILDBOX_ENV_TYPE"

# === Container Detection ===
CONTAINER_MARKER_PATH = "/.dockerenv"
CONTAINER_MARKER_ENV = "BUILDBOX_IN_CONTAINER"

# === Container Engine ===
DEFAULT_ENGINE = "docker"
DEFAULT_IMAGE_TAG = "latest"
DEFAULT_SHELL = "/bin/bash"

# Host-specific variables that must not leak into a container
HOST_ONLY_ENV = frozenset(
    {
        "PATH",
        "HOME",
        "HOSTNAME",
        "SHELL",
        "USER",
        "LOGNAME",
        "PWD",
        "OLDPWD",
        "TMPDIR",
        "LD_LIBRARY_PATH",
        "SSH_AUTH_SOCK",
        "DISPLAY",
        "XDG_RUNTIME_DIR",
    }
)
