"""Shared helpers with no dependency on the rest of the package.

    fs              YAML loading, atomic program writes
    logging_config  root logger setup and contextual fields
"""

from . import fs
from . import logging_config

from .logging_config import pop_context, push_context, setup_logging

__all__ = [
    'fs',
    'logging_config',
    'pop_context',
    'push_context',
    'setup_logging',
]
