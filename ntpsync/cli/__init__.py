from .config import (
    GLOBAL_OPTIONS, GlobalOptions, ConfigManager,
)
from .app import app, main

__all__ = [
    'GLOBAL_OPTIONS', 'GlobalOptions', 'ConfigManager',
    'app', 'main'
]
