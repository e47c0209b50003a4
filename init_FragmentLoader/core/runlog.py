# init_FragmentLoader/core/runlog.py
from __future__ import annotations

from .model import FailureEntry, SuccessEntry


class RunLog:
    """
    Append-only ledger of one loading session.

    Successes and failures are two independent streams, each kept in the
    order entries were recorded (oldest first). Nothing is deduplicated: a
    fragment loaded twice shows up twice. A RunLog is mutable with a single
    writer; do not share one between sessions running on different threads.
    """

    def __init__(self):
        self._successes: list[SuccessEntry] = []
        self._failures: list[FailureEntry] = []

    def record_success(self, name: str, elapsed: float) -> None:
        self._successes.append(SuccessEntry(str(name), float(elapsed)))

    def record_failure(self, name: str, message: str) -> None:
        self._failures.append(FailureEntry(str(name), str(message)))

    @property
    def successes(self) -> tuple[SuccessEntry, ...]:
        return tuple(self._successes)

    @property
    def failures(self) -> tuple[FailureEntry, ...]:
        return tuple(self._failures)

    @property
    def has_failures(self) -> bool:
        return bool(self._failures)

    def render_success_log(self) -> str:
        return "\n".join(f"loaded {e.name}. {e.elapsed:.6f}" for e in self._successes)

    def render_failure_log(self) -> str:
        return "\n".join(f"{e.name}. {e.message}" for e in self._failures)

    def __len__(self) -> int:
        return len(self._successes) + len(self._failures)

    def __repr__(self) -> str:
        return f"RunLog(successes={len(self._successes)}, failures={len(self._failures)})"
