"""assetforge: front-end build pipeline orchestrator."""

from assetforge.version import __version__

__all__ = ["__version__"]
