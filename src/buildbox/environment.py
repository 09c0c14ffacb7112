"""Environment composition for child processes.

Precedence, lowest to highest:

1. the inherited process environment
2. variables left behind by the build config's init-env script
3. ``-e KEY=VALUE`` overrides from the command line
4. the derived ``BUILDBOX_*`` variables
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from .constants import (
    ENV_BUILD_CONFIG,
    ENV_BUILD_VARIANT,
    ENV_ENV_TYPE,
    ENV_PRODUCT_NAME,
    ENV_WORKSPACE_DIR,
)

if TYPE_CHECKING:
    from .config import EnvType, Variant
    from .workspace import Workspace


def merge_env(override: Mapping[str, str], inherited: Mapping[str, str]) -> dict[str, str]:
    """Union of two maps where ``override`` wins on conflicting keys."""
    merged = dict(inherited)
    merged.update(override)
    return merged


def compose_environment(
    inherited: Mapping[str, str],
    init_env: Mapping[str, str] | None = None,
    overrides: Mapping[str, str] | None = None,
    derived: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Merge the four environment layers in precedence order."""
    env: dict[str, str] = {}
    for layer in (inherited, init_env, overrides, derived):
        if layer:
            env.update(layer)
    return env


def derived_environment(
    workspace: Workspace,
    variant: Variant,
    env_type: EnvType | None = None,
) -> dict[str, str]:
    """Fixed variables describing the selected build for child processes."""
    config = workspace.config()
    env = {
        ENV_WORKSPACE_DIR: str(workspace.settings.work_dir),
        ENV_BUILD_CONFIG: workspace.config_name(),
        ENV_PRODUCT_NAME: config.product or "",
        ENV_BUILD_VARIANT: str(variant),
    }
    if env_type is not None:
        env[ENV_ENV_TYPE] = str(env_type)
    return env
