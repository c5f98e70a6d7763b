"""Configuration package for pawnvault.

The constants live in :mod:`pawnvault.config.settings`; they are
re-exported here so callers can write ``from pawnvault.config import
CONTENT_EXTENSION``.
"""

from .settings import *  # noqa: F401,F403
from .settings import __all__  # noqa: F401
