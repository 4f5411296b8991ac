"""Manifest validation and default construction."""

from __future__ import annotations

from typing import Union

from themekit import application_version

from .errors import InvalidManifestError, UnknownComponentTypeError
from .models import (
    COMPONENT_MODELS,
    AccentColors,
    ComponentInfo,
    ComponentManifest,
    LEDSettings,
    ThemeInfo,
    ThemeManifest,
)

GITHUB_URL_PREFIX = "https://github.com/"

DEFAULT_DESCRIPTION = "Exported system theme"
DEFAULT_REPOSITORY_URL = "https://github.com/[username]/[repo]"
DEFAULT_COMMIT = "[commit-hash-will-go-here]"
DEFAULT_BRANCH = "main"
DEFAULT_DEVICE = "brick"
DEFAULT_SYSTEMS = ("all",)

STRICT_FIELDS = (
    "name",
    "author",
    "description",
    "repository_url",
    "commit",
    "branch",
    "device",
    "systems",
)


def validate_manifest(
    manifest: Union[ThemeManifest, ComponentManifest], *, strict: bool
) -> list[str]:
    """Return the names of fields that are missing or invalid.

    Strict validation gates destructive operations such as Apply and
    requires the full provenance block; permissive validation only
    requires a name.

    Args:
        manifest: Theme or component manifest to check.
        strict: Whether to require every provenance field.

    Returns:
        list[str]: Offending field names in declaration order; empty when valid.
    """
    if not isinstance(manifest, ThemeManifest):
        header = manifest.component_info
        missing = [] if header.name.strip() else ["name"]
        if strict and not header.author.strip():
            missing.append("author")
        return missing

    info = manifest.theme_info
    if not strict:
        return [] if info.name.strip() else ["name"]

    problems: list[str] = []
    for field in STRICT_FIELDS:
        value = getattr(info, field)
        if field == "systems":
            if not [system for system in value if system.strip()]:
                problems.append(field)
        elif not str(value).strip():
            problems.append(field)
        elif field == "repository_url" and not value.startswith(GITHUB_URL_PREFIX):
            problems.append(field)
    return problems


def check_manifest(manifest: Union[ThemeManifest, ComponentManifest], *, strict: bool) -> None:
    """Raise when `validate_manifest` reports any problem.

    Raises:
        InvalidManifestError: Naming every missing or invalid field at once.
    """
    problems = validate_manifest(manifest, strict=strict)
    if not problems:
        return

    if isinstance(manifest, ThemeManifest):
        url = manifest.theme_info.repository_url
        invalid = [
            field for field in problems if field == "repository_url" and url.strip()
        ]
    else:
        invalid = []
    missing = [field for field in problems if field not in invalid]

    parts: list[str] = []
    if missing:
        parts.append(f"manifest is missing required fields: {', '.join(missing)}")
    if invalid:
        parts.append(f"repository_url must start with {GITHUB_URL_PREFIX} (got {url!r})")
    raise InvalidManifestError("; ".join(parts), problems)


def create_default(name: str, author: str = "") -> ThemeManifest:
    """Return a full theme manifest that passes strict validation once named.

    Args:
        name: Theme name.
        author: Theme author.

    Returns:
        ThemeManifest: Manifest with placeholder provenance and no content.
    """
    return ThemeManifest(
        theme_info=ThemeInfo(
            name=name,
            author=author,
            description=DEFAULT_DESCRIPTION,
            repository_url=DEFAULT_REPOSITORY_URL,
            commit=DEFAULT_COMMIT,
            branch=DEFAULT_BRANCH,
            device=DEFAULT_DEVICE,
            systems=list(DEFAULT_SYSTEMS),
            exported_by=_exported_by(),
        )
    )


def create_minimal(component_type: str, name: str, author: str = "") -> ComponentManifest:
    """Return an empty component manifest of the given type.

    Accent manifests carry the default palette and LED manifests four zones
    with the default profile, so the package is loadable before it is
    populated.

    Raises:
        UnknownComponentTypeError: If `component_type` is not recognized.
    """
    model = COMPONENT_MODELS.get(component_type)
    if model is None:
        raise UnknownComponentTypeError(
            f"unknown component type: {component_type}", ["component_info.type"]
        )

    info = ComponentInfo(name=name, type=component_type, author=author, exported_by=_exported_by())
    if component_type == "accent":
        return model(component_info=info, accent_colors=AccentColors())
    if component_type == "led":
        return model(component_info=info, led_settings=LEDSettings())
    return model(component_info=info)


def _exported_by() -> str:
    return f"themekit {application_version()}"


__all__ = [
    "GITHUB_URL_PREFIX",
    "STRICT_FIELDS",
    "DEFAULT_DESCRIPTION",
    "DEFAULT_REPOSITORY_URL",
    "DEFAULT_COMMIT",
    "DEFAULT_BRANCH",
    "DEFAULT_DEVICE",
    "validate_manifest",
    "check_manifest",
    "create_default",
    "create_minimal",
]
