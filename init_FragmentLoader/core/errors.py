# init_FragmentLoader/core/errors.py
from __future__ import annotations


class FragmentLoaderError(Exception):
    """Base class for everything the loader raises on purpose."""


class FatalSessionError(FragmentLoaderError):
    """Target directory is missing or not a directory. Aborts the whole session."""


class ArtifactIntegrityError(FragmentLoaderError):
    """A fragment's source/compiled pair is broken (nothing to load or compile)."""


class CompileFailure(FragmentLoaderError):
    """The compile callback raised while rebuilding a stale artifact."""


class LoadFailure(FragmentLoaderError):
    """The load callback raised, or the fragment could not be located at all."""
