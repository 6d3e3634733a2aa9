"""
salesos_config -- single public entrypoint for Sales OS configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Services and route handlers never read the
    YAML files themselves; they receive a frozen ``SalesOSConfig`` and
    turn its sections into runtime objects with ``salesos_config.bridges``.

Architecture position:
    Configuration -- sits above ``salesos_kernel`` and ``salesos_engines``
    and below ``salesos_services``.  The kernel and engines MUST NEVER
    import from ``salesos_config``.

Invariants enforced:
    - Load-time validation: a configuration set that fails validation is
      never returned.
    - Deterministic checksum: the same document always yields the same
      ``SalesOSConfig.checksum``.

Failure modes:
    - ``FileNotFoundError`` -- the requested configuration file is missing.
    - ``ConfigurationError`` (and its table-specific subclasses) -- the
      document failed parsing or validation.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``SALESOS_CONFIG_TRACE`` log record carrying the config id, version,
    checksum and table sizes, tying computed figures back to the exact
    configuration that produced them.
"""

from __future__ import annotations

from pathlib import Path

from salesos_config.loader import load_config
from salesos_config.schema import SalesOSConfig
from salesos_config.validator import validate_configuration
from salesos_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(config_path: Path | str | None = None) -> SalesOSConfig:
    """Load, validate and return the active configuration set.

    Args:
        config_path: Override path to a YAML configuration document.
            Defaults to salesos_config/sets/default.yaml.

    Returns:
        SalesOSConfig -- frozen and validated.

    Raises:
        FileNotFoundError: If the configuration file does not exist.
        ConfigurationError: If parsing or validation fails.
    """
    path = Path(config_path) if config_path is not None else _DEFAULT_CONFIG_PATH

    config = load_config(path)
    validate_configuration(config)

    _logger.info(
        "SALESOS_CONFIG_TRACE",
        extra={
            "trace_type": "SALESOS_CONFIG_TRACE",
            "config_set_id": config.config_id,
            "config_set_version": config.version,
            "checksum": config.checksum,
            "branding_theme_count": len(config.branding_themes),
            "commission_band_count": len(config.commission_bands),
        },
    )

    return config


__all__ = [
    "SalesOSConfig",
    "get_active_config",
]
