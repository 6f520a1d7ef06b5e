from .config import RegsetConfig
from .logging_config import configure_logging, get_logger
from .strings import subscriptify


__all__ = [
    "RegsetConfig",
    "configure_logging",
    "get_logger",
    "subscriptify",
]
