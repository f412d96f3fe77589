"""pollgrid Python package.

Calendar and time-slot selection engine for availability polls.

Public API:
  - import from `pollgrid.api` (preferred) or `import pollgrid` (re-export)
"""

from __future__ import annotations

from .api import *  # noqa: F401,F403
from . import api as _api

__all__ = list(_api.__all__)
