"""Core package for decaplens: settings, errors and the versioned source model.

Downstream code imports from the submodules directly:
    from decaplens.core.settings import settings, load_settings, Settings, get_logger
    from decaplens.core.model.project import Project
"""

from __future__ import annotations

__all__ = ["__doc__"]
