"""
asset_config -- single public entrypoint for lifecycle configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    directly.

Architecture position:
    Configuration -- YAML-driven settings and approval policies.  Sits
    above ``asset_kernel`` and below ``asset_services``.  The kernel and
    engines MUST NEVER import from ``asset_config``; ``bridges`` translates
    definitions into engine inputs.

Failure modes:
    - ``ConfigurationError`` -- missing file, malformed YAML or invalid
      values.

Audit relevance:
    Every successful ``get_active_config()`` call emits an
    ``ASSET_CONFIG_TRACE`` log entry with the config id, version and
    checksum, tying each run to the exact configuration that governed it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from asset_config.loader import load_config
from asset_config.schema import LifecycleConfig

_logger = logging.getLogger("asset_kernel.config")

# Default configuration set
_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(config_path: Path | None = None) -> LifecycleConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Override path to a configuration set.  Defaults to
            ``asset_config/sets/default.yaml``.

    Raises:
        ConfigurationError: if the configuration cannot be loaded.
    """
    config = load_config(config_path or _DEFAULT_CONFIG_PATH)

    _logger.info(
        "ASSET_CONFIG_TRACE",
        extra={
            "trace_type": "ASSET_CONFIG_TRACE",
            "config_set_id": config.config_id,
            "config_set_version": config.version,
            "checksum": config.checksum,
            "approval_policy_count": len(config.approval_policies),
            "default_method": config.valuation.default_method,
        },
    )

    return config


__all__ = ["LifecycleConfig", "get_active_config"]
