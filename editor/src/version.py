"""Application version module.

The application version comes from the VERSION file at the project root
(editor/src/version.py -> ../../VERSION), or from the installed distribution
metadata when running from a wheel. The autosave schema version is separate
and lives in constants.AUTOSAVE_SCHEMA_VERSION.
"""

from pathlib import Path

DISTRIBUTION_NAME = "image-text-composer"


def get_version() -> str:
    """Get the application version string (e.g. '1.0.0')."""
    version_file = Path(__file__).resolve().parent.parent.parent / "VERSION"
    try:
        return version_file.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        pass

    from importlib import metadata
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return "0.0.0"
