"""
stock_config: single public entrypoint for stock card settings.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``. Engines never read files themselves; they
    receive a ``StockCardConfig`` and fall back to ``DEFAULT_CONFIG``.

Failure modes:
    - ``FileNotFoundError`` -- the requested settings file is missing.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``ConfigurationError`` -- unknown keys or invalid values.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``STOCK_CONFIG_TRACE`` log entry with the source path and checksum so
    that a generated stock card can be tied to the exact settings used.
"""

from __future__ import annotations

from pathlib import Path

from stock_config.loader import compute_checksum, load_config_file
from stock_config.schema import DEFAULT_CONFIG, StockCardConfig
from stock_kernel.logging_config import get_logger

_logger = get_logger("config")

# Default settings file
DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(config_path: Path | None = None) -> StockCardConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Override path to a YAML settings file.
            Defaults to stock_config/sets/default.yaml.

    Returns:
        A validated, frozen StockCardConfig.

    Raises:
        FileNotFoundError: If the settings file does not exist.
        ConfigurationError: If the settings are invalid.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    config = load_config_file(path)

    _logger.info(
        "STOCK_CONFIG_TRACE",
        extra={
            "trace_type": "STOCK_CONFIG_TRACE",
            "config_path": str(path),
            "checksum": compute_checksum(config),
        },
    )
    return config


__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_PATH",
    "StockCardConfig",
    "get_active_config",
]
