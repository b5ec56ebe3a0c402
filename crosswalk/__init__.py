"""crosswalk: reconcile a source music catalog against a target catalog."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("crosswalk")
except PackageNotFoundError:
    # Development environment fallback
    __version__ = "0.1.0-dev"

__license__ = "MIT"
