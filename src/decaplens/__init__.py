"""decaplens: mine a source tree's edit history for field decapsulations.

A decapsulation is an accessor (``getX``, ``setX`` or ``isX``) introduced for a
field in a transaction *after* the one that introduced the field.
"""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.1.0"
