"""themekit: apply, export, and back up themes on handheld devices."""

from importlib import metadata as _metadata

DISTRIBUTION_NAME = "themekit"

__all__ = ["__version__", "application_version"]


def application_version() -> str:
    """Return the installed version, or `0.0.0` when running from a source tree."""
    try:
        return _metadata.version(DISTRIBUTION_NAME)
    except _metadata.PackageNotFoundError:
        return "0.0.0"


def __getattr__(name: str):
    if name == "__version__":
        return application_version()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
