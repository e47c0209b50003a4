# init_FragmentLoader/core/session.py
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from .artifacts import ArtifactResolver, SearchPath
from .engine import LoadEngine
from .errors import FatalSessionError
from .model import CompileCallback, LoadCallback, PassDescriptor, PlatformFacts
from .name_filter import Lister, _listdir
from .runlog import RunLog
from .settings import LoaderSettings

_LOG = logging.getLogger(__name__)


class StartupNotifier:
    """
    Callbacks to run once the embedding application has finished starting up.
    ``notify`` runs each registered callback once, in registration order.
    """

    def __init__(self):
        self._pending: list[Callable[[], None]] = []

    def register(self, callback: Callable[[], None]) -> None:
        self._pending.append(callback)

    def notify(self) -> None:
        pending, self._pending = self._pending, []
        for cb in pending:
            cb()

    def __len__(self) -> int:
        return len(self._pending)


@dataclass
class Session:
    directory: Path
    passes: list[PassDescriptor]
    run_log: RunLog
    search_path: SearchPath
    log_scheduled: bool = False
    attempted: list[str] = field(default_factory=list)

    def rendered_log(self) -> str:
        """Error log, full log and search roots as one text block."""
        return (
            "------- error log -------\n\n"
            + self.run_log.render_failure_log()
            + "\n\n"
            + "------- init log -------\n\n"
            + self.run_log.render_success_log()
            + "\n\n"
            + "------- load path -------\n\n"
            + "\n".join(str(r) for r in self.search_path.roots)
        )


def wants_cocoa_pass(facts: PlatformFacts) -> bool:
    # Mixes window-system backend with display presence; likely over-broad
    # (any headless non-Carbon Darwin gets the cocoa files). Kept as is.
    return facts.cocoa or (facts.darwin and not facts.carbon and not facts.graphical_display)


def platform_passes(facts: PlatformFacts, settings: LoaderSettings) -> list[PassDescriptor]:
    """Unsorted platform passes that apply to ``facts``, in table order."""
    gates = [
        ("windows", facts.windows),
        ("meadow",  facts.windows and facts.meadow),
        ("carbon",  facts.carbon),
        ("cocoa",   wants_cocoa_pass(facts)),
        ("linux",   facts.linux),
        ("bsd",     facts.bsd),
        ("nw",      not facts.graphical_display),
    ]
    return [PassDescriptor(settings.platform_patterns[name], sort=False) for name, on in gates if on]


def _resolve_directory(directory) -> Path:
    d = Path(directory).expanduser()
    try:
        d = d.resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise FatalSessionError(f"init directory does not exist: {directory}") from e
    if not d.is_dir():
        raise FatalSessionError(f"init directory is not a directory: {d}")
    return d


def run_session(directory,
                facts: PlatformFacts,
                settings: LoaderSettings,
                *,
                loader: LoadCallback,
                compiler: CompileCallback | None = None,
                run_log: RunLog | None = None,
                search_path: SearchPath | None = None,
                notifier: StartupNotifier | None = None,
                show_log: Callable[[str], None] | None = None,
                listdir: Lister = _listdir) -> Session:
    """
    Run the default pass and every applicable platform pass over ``directory``.

    Only a missing/non-directory target raises (FatalSessionError); per-fragment
    problems end up in ``Session.run_log``. When the show_log policy fires and
    a notifier is given, rendering the log is deferred to ``notifier.notify()``.
    ``run_log`` and ``search_path`` are mutable and single-writer: do not run
    sessions sharing them from several threads without external locking.
    """
    root = _resolve_directory(directory)
    run_log = run_log if run_log is not None else RunLog()
    search_path = search_path if search_path is not None else SearchPath()

    resolver = ArtifactResolver(
        search_path,
        source_suffix=settings.source_suffix,
        compiled_suffix=settings.compiled_suffix,
        compile_enabled=settings.compile,
        compiler=compiler,
        prefer_newer=settings.prefer_newer,
    )
    engine = LoadEngine(resolver, loader, run_log, listdir=listdir)

    # facts are evaluated once, before any fragment is loaded
    passes = [PassDescriptor(settings.default_pattern, sort=True)] + platform_passes(facts, settings)
    session = Session(directory=root, passes=passes, run_log=run_log, search_path=search_path)

    for i, desc in enumerate(passes):
        _LOG.debug("state: %s", "RunningDefaultPass" if i == 0 else f"RunningPlatformPass({i - 1})")
        session.attempted.extend(engine.run_pass(desc.pattern, root, desc.sort))
    _LOG.debug("state: Complete")

    policy = settings.show_log
    fire = policy == "always" or (policy == "errors_only" and run_log.has_failures)
    if fire and notifier is not None:
        present = show_log or print
        notifier.register(lambda: present(session.rendered_log()))
        session.log_scheduled = True
    _LOG.info("session over %s: %d loaded, %d failed, log %s",
              root, len(run_log.successes), len(run_log.failures),
              "scheduled" if session.log_scheduled else "not scheduled")
    return session
