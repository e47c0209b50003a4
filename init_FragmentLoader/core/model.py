# init_FragmentLoader/core/model.py
from __future__ import annotations
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Literal

LogVisibility = Literal["always", "errors_only", "never"]

LoadCallback = Callable[[Path], None]              # raises on failure
CompileCallback = Callable[[Path, Path], None]     # (source, compiled), raises on failure

@dataclass(frozen=True)
class PassDescriptor:
    pattern: re.Pattern[str]
    sort: bool                # True -> lexicographic, False -> directory enumeration order

@dataclass(frozen=True)
class ArtifactPair:
    source: Path | None       # first match on the search path, or None
    compiled: Path | None

@dataclass(frozen=True)
class ResolvedArtifact:
    path: Path                # the file actually handed to the load callback
    compiled: bool

@dataclass(frozen=True)
class SuccessEntry:
    name: str                 # resolved path that was loaded
    elapsed: float            # seconds

@dataclass(frozen=True)
class FailureEntry:
    name: str
    message: str

@dataclass(frozen=True)
class PlatformFacts:
    windows: bool = False
    meadow: bool = False
    carbon: bool = False
    cocoa: bool = False
    darwin: bool = False
    linux: bool = False
    bsd: bool = False
    graphical_display: bool = True
