"""Runtime settings for cafepos.

Every setting can be overridden with an environment variable; stores also
accept explicit directories so tests never touch the default data dir.
"""

import logging
import os
from pathlib import Path

# Local data directory within the cafepos project
# Can be overridden via CAFEPOS_DATA_DIR environment variable
_default_data_dir = Path(__file__).parent.parent.parent / "data"


def data_dir() -> Path:
    """Directory holding the JSON blobs."""
    return Path(os.environ.get("CAFEPOS_DATA_DIR", _default_data_dir))


def export_dir() -> Path:
    """Directory where history exports are written."""
    override = os.environ.get("CAFEPOS_EXPORT_DIR")
    if override:
        return Path(override)
    return data_dir() / "exports"


def currency_symbol() -> str:
    return os.environ.get("CAFEPOS_CURRENCY_SYMBOL", "$")


def log_level() -> int:
    """Log level name from CAFEPOS_LOG_LEVEL, defaulting to WARNING."""
    name = os.environ.get("CAFEPOS_LOG_LEVEL", "WARNING").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.WARNING


# Storage keys; these names are part of the on-disk format
MENU_KEY = "menu"
PENDING_KEY = "pedidos"
HISTORY_KEY = "pedidosHistorial"

# Filename prefix for history exports
EXPORT_PREFIX = "historial_pedidos_"

# Largest quantity accepted for a single order line
MAX_LINE_QUANTITY = 999
