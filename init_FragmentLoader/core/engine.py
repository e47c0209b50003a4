# init_FragmentLoader/core/engine.py
from __future__ import annotations
import logging
import re
import time
from pathlib import Path

from .artifacts import ArtifactResolver
from .errors import FragmentLoaderError, LoadFailure
from .model import LoadCallback
from .name_filter import Lister, _listdir, select, strip_suffix
from .runlog import RunLog

_LOG = logging.getLogger(__name__)

def _message(e: BaseException) -> str:
    return str(e) or type(e).__name__


class LoadEngine:
    """Filter -> resolve -> load -> record, one pass at a time."""

    def __init__(self, resolver: ArtifactResolver, loader: LoadCallback, run_log: RunLog,
                 listdir: Lister = _listdir):
        self.resolver = resolver
        self.loader = loader
        self.run_log = run_log
        self.listdir = listdir

    def run_pass(self, pattern: re.Pattern[str], directory: Path, sort: bool) -> list[str]:
        """
        Load every fragment of ``directory`` matching ``pattern``.

        A failing fragment is recorded in the run log and the pass moves on;
        nothing raised by resolution, compilation or loading escapes. Returns
        the display names in the order they were attempted.
        """
        directory = Path(directory)
        self.resolver.search_path.add(directory)

        candidates = select(
            pattern, directory, sort,
            source_suffix=self.resolver.source_suffix,
            compiled_suffix=self.resolver.compiled_suffix,
            listdir=self.listdir,
        )
        attempted: list[str] = []
        for candidate in candidates:
            fragment = strip_suffix(candidate, self.resolver.source_suffix, self.resolver.compiled_suffix)
            display: str | None = None
            try:
                start = time.perf_counter()
                artifact = self.resolver.resolve(fragment)
                display = str(artifact.path)
                try:
                    self.loader(artifact.path)
                except Exception as e:
                    raise LoadFailure(_message(e)) from e
                elapsed = time.perf_counter() - start
            except Exception as e:
                if not isinstance(e, FragmentLoaderError):
                    e = LoadFailure(_message(e))
                if display is None:
                    display = str(self.resolver.locate(fragment) or directory / candidate)
                _LOG.debug("failed %s: %s", display, e)
                self.run_log.record_failure(display, _message(e))
            else:
                _LOG.debug("loaded %s in %.6fs", display, elapsed)
                self.run_log.record_success(display, elapsed)
            attempted.append(display)

        _LOG.info("pass %r over %s: %d fragment(s)", pattern.pattern, directory, len(attempted))
        return attempted
