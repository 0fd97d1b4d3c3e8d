"""Version information for the swap sleuth analyzer."""

__version__ = "0.3.0"


def get_version() -> str:
    """Get the current version string."""
    return __version__
