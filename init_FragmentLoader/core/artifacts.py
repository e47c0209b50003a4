# init_FragmentLoader/core/artifacts.py
from __future__ import annotations
import logging
from pathlib import Path

from .errors import ArtifactIntegrityError, CompileFailure, LoadFailure
from .model import ArtifactPair, CompileCallback, ResolvedArtifact

_LOG = logging.getLogger(__name__)


class SearchPath:
    """
    Ordered list of directories fragments are located in.

    The most recently added root is searched first; adding a root that is
    already present changes nothing. Process-wide mutable state with a single
    writer: sessions sharing one SearchPath must not run concurrently without
    external locking.
    """

    def __init__(self, roots=()):
        self._roots: list[Path] = []
        for r in roots:
            self.add(r)

    def add(self, root: Path) -> None:
        root = Path(root)
        if root in self._roots:
            return
        self._roots.insert(0, root)

    @property
    def roots(self) -> tuple[Path, ...]:
        return tuple(self._roots)

    def locate(self, file_name: str) -> Path | None:
        """First ``root / file_name`` that exists as a file, or None."""
        for root in self._roots:
            p = root / file_name
            if p.is_file():
                return p
        return None

    def __contains__(self, root) -> bool:
        return Path(root) in self._roots

    def __len__(self) -> int:
        return len(self._roots)


def is_stale(source: Path | None, compiled: Path | None) -> bool:
    """Source exists and (compiled is missing or source is strictly newer)."""
    if source is None or not source.is_file():
        return False
    if compiled is None or not compiled.is_file():
        return True
    return source.stat().st_mtime > compiled.stat().st_mtime


class ArtifactResolver:
    """
    Decide which physical file a logical fragment loads from.

    compile=False -> defer to the generic loader preference: the compiled file
                     wins when both sit in the same root, unless prefer_newer
                     is set and the source is newer.
    compile=True  -> only-compiled loads as is; a stale pair is rebuilt through
                     the compile callback first (old compiled file deleted);
                     a fresh pair loads the compiled file; nothing at all is an
                     ArtifactIntegrityError.
                     With a source found, only the compiled file next to it
                     counts; a compiled file in another root is ignored.
    """

    def __init__(self,
                 search_path: SearchPath,
                 *,
                 source_suffix: str,
                 compiled_suffix: str,
                 compile_enabled: bool = False,
                 compiler: CompileCallback | None = None,
                 prefer_newer: bool = False):
        if compile_enabled and compiler is None:
            raise ValueError("compile_enabled requires a compile callback")
        self.search_path = search_path
        self.source_suffix = source_suffix
        self.compiled_suffix = compiled_suffix
        self.compile_enabled = compile_enabled
        self.compiler = compiler
        self.prefer_newer = prefer_newer

    def pair(self, fragment: str) -> ArtifactPair:
        return ArtifactPair(
            source=self.search_path.locate(fragment + self.source_suffix),
            compiled=self.search_path.locate(fragment + self.compiled_suffix),
        )

    def locate(self, fragment: str) -> Path | None:
        """Best guess at the file a fragment refers to, for diagnostics."""
        p = self.pair(fragment)
        return p.compiled or p.source

    def resolve(self, fragment: str) -> ResolvedArtifact:
        pair = self.pair(fragment)
        if not self.compile_enabled:
            return self._generic(fragment, pair)

        if pair.source is None:
            if pair.compiled is None:
                raise ArtifactIntegrityError(
                    f"only a byte-compiled file is expected but absent: {fragment}{self.compiled_suffix}"
                )
            _LOG.debug("%s: compiled only, loading as is", pair.compiled)
            return ResolvedArtifact(pair.compiled, compiled=True)

        # compiled file lives next to the source it was built from
        compiled = pair.source.with_name(pair.source.name[: -len(self.source_suffix)] + self.compiled_suffix)
        if not is_stale(pair.source, compiled):
            _LOG.debug("%s: up to date", compiled)
            return ResolvedArtifact(compiled, compiled=True)

        if compiled.exists():
            _LOG.debug("%s: stale, deleting", compiled)
            compiled.unlink()
        try:
            self.compiler(pair.source, compiled)
        except Exception as e:
            raise CompileFailure(f"compile failed for {pair.source}: {e}") from e
        if not compiled.is_file():
            raise ArtifactIntegrityError(f"compile produced no file: {compiled}")
        _LOG.info("compiled %s -> %s", pair.source.name, compiled.name)
        return ResolvedArtifact(compiled, compiled=True)

    def _generic(self, fragment: str, pair: ArtifactPair) -> ResolvedArtifact:
        src, cmp_ = pair.source, pair.compiled
        if src is None and cmp_ is None:
            raise LoadFailure(f"cannot locate fragment: {fragment}")
        if cmp_ is None:
            return ResolvedArtifact(src, compiled=False)
        if src is None:
            return ResolvedArtifact(cmp_, compiled=True)
        # both found: only compare when they are siblings, otherwise the
        # earlier search root decides
        if src.parent != cmp_.parent:
            roots = self.search_path.roots
            first = min((src, cmp_), key=lambda p: roots.index(p.parent) if p.parent in roots else len(roots))
            return ResolvedArtifact(first, compiled=first == cmp_)
        if self.prefer_newer and src.stat().st_mtime > cmp_.stat().st_mtime:
            return ResolvedArtifact(src, compiled=False)
        return ResolvedArtifact(cmp_, compiled=True)
