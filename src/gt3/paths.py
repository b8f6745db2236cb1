"""Joining discovered template and catalog paths onto the directory they live in."""

from __future__ import annotations

from pathlib import Path, PurePosixPath


class PathBlockedError(Exception):
    """Raised when a theme-relative path would land outside its root directory."""

    def __init__(self, reason: str, hint: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.hint = hint


def resolve_theme_path(root: Path, relative: str) -> Path:
    """Join a `/`-separated relative path onto root, refusing anything outside it.

    Paths come from discovery, the locales setting and template names, so
    they are always relative; a symlink that points elsewhere is still caught
    after resolution.
    """
    pure = PurePosixPath(relative)
    if not pure.parts or pure.is_absolute() or ".." in pure.parts:
        raise PathBlockedError(
            reason=f"'{relative}' is not a path inside the theme.",
            hint="Template and catalog paths must be relative, e.g. 'partials/card.hbs'.",
        )
    base = root.resolve()
    resolved = base.joinpath(*pure.parts).resolve(strict=False)
    if not resolved.is_relative_to(base):
        raise PathBlockedError(
            reason=f"'{relative}' resolves outside {base}.",
            hint="Replace the symlink with a regular file or directory.",
        )
    return resolved
