"""Persistence for the record of which packages are applied to the device."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from .errors import MissingStateError, StateError
from .models import ApplicationInfo, AppliedComponents, AppliedState

LOGGER = logging.getLogger(__name__)

DEFAULT_STATE_FILENAME = "state.json"

_COMPONENT_FIELDS = {
    "wallpaper": "wallpapers",
    "icon": "icons",
    "accent": "accents",
    "led": "leds",
    "font": "fonts",
    "overlay": "overlays",
}


class StateRepository:
    """Load and save the applied-component state document.

    Every save rewrites the whole file; callers pass the state object they
    loaded and receive updated copies from `record_applied`.
    """

    def __init__(self, workspace_root: Path, filename: str = DEFAULT_STATE_FILENAME) -> None:
        """Initialize the repository for a workspace.

        Args:
            workspace_root: Directory that owns the state file.
            filename: Name of the state file within the workspace.
        """
        self._path = workspace_root / filename

    @property
    def path(self) -> Path:
        """Return the location of the state file."""
        return self._path

    def load(self) -> AppliedState:
        """Load the stored state.

        Returns:
            AppliedState: Deserialized state document.

        Raises:
            MissingStateError: If no state file exists.
            StateError: If the stored data cannot be read or parsed.
        """
        if not self._path.exists():
            raise MissingStateError(f"No applied-component state found at {self._path}")

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return AppliedState.model_validate(data)
        except (OSError, UnicodeDecodeError) as exc:
            raise StateError(f"Unable to read applied-component state: {exc}") from exc
        except (json.JSONDecodeError, ValidationError) as exc:
            raise StateError(f"Invalid applied-component state data: {exc}") from exc

    def load_or_default(self, version: str = "0.0.0") -> AppliedState:
        """Return the stored state, or a fresh one when none has been saved.

        Args:
            version: Application version recorded in a fresh state.

        Returns:
            AppliedState: Stored or newly created state.
        """
        try:
            return self.load()
        except MissingStateError:
            LOGGER.debug("Creating new applied-component state at %s", self._path)
            return AppliedState(application_info=ApplicationInfo(version=version))

    def save(self, state: AppliedState) -> AppliedState:
        """Rewrite the state file with the given document.

        Args:
            state: State to persist; its `last_updated` is refreshed.

        Returns:
            AppliedState: The saved document.
        """
        state.last_updated = datetime.now(timezone.utc)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(state.model_dump(mode="json"), indent=2), encoding="utf-8"
        )
        LOGGER.debug("Saved applied-component state to %s", self._path)
        return state

    def record(self, kind: str, name: str, version: str = "0.0.0") -> AppliedState:
        """Load, update, and save the state in one step.

        An unreadable state file is replaced with a fresh document rather
        than failing the operation that just changed the device.

        Raises:
            StateError: If `kind` is not a known component type.
        """
        try:
            state = self.load_or_default(version)
        except StateError as exc:
            LOGGER.warning("Discarding unreadable state file %s: %s", self._path, exc)
            state = AppliedState(application_info=ApplicationInfo(version=version))
        state.application_info.version = version
        return self.save(record_applied(state, kind, name))


def record_applied(state: AppliedState, kind: str, name: str) -> AppliedState:
    """Return a copy of `state` recording `name` as applied for `kind`.

    Args:
        state: Current state document.
        kind: One of `wallpaper`, `icon`, `accent`, `led`, `font`,
            `overlay`, or `theme`.
        name: Package name to record.

    Returns:
        AppliedState: Updated copy; the input is left untouched.

    Raises:
        StateError: If `kind` is not a known component type.
    """
    updated = state.model_copy(deep=True)
    if kind == "theme":
        updated.current_theme = name
        return updated

    field = _COMPONENT_FIELDS.get(kind)
    if field is None:
        raise StateError(f"Unknown component type: {kind}")
    setattr(updated.applied_components, field, name)
    return updated


def applied_name(state: AppliedState, kind: str) -> str | None:
    """Return the package name recorded for `kind`.

    Raises:
        StateError: If `kind` is not a known component type.
    """
    if kind == "theme":
        return state.current_theme
    field = _COMPONENT_FIELDS.get(kind)
    if field is None:
        raise StateError(f"Unknown component type: {kind}")
    return getattr(state.applied_components, field)


__all__ = [
    "StateRepository",
    "DEFAULT_STATE_FILENAME",
    "AppliedState",
    "AppliedComponents",
    "ApplicationInfo",
    "record_applied",
    "applied_name",
    "StateError",
    "MissingStateError",
]
