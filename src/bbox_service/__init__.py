"""
HTTP service (FastAPI) wrapping the analyze and convert stages.

Settings are read from the environment here and only here; the stage
packages receive explicit config objects.
"""

from .app import create_app
from .settings import Settings

__all__ = ["Settings", "create_app"]
