# init_FragmentLoader/core/plotting.py
from __future__ import annotations
from pathlib import Path
import matplotlib.pyplot as plt

from .runlog import RunLog

def _short(name: str, limit: int = 60) -> str:
    return name if len(name) <= limit else "…" + name[-(limit - 1):]

def save_timing_plot(run_log: RunLog, out_dir: Path, file_name: str = "load_times.png") -> Path | None:
    """
    Horizontal bar chart of per-fragment load time, in load order (top to bottom).
    Returns the written path, or None when nothing loaded.
    """
    if not run_log.successes:
        print("[INFO] no fragment loaded; skipping timing plot.")
        return None
    out_dir.mkdir(parents=True, exist_ok=True)

    labels = [_short(Path(e.name).name) for e in run_log.successes]
    values = [e.elapsed * 1000.0 for e in run_log.successes]

    plt.figure(figsize=(9, max(2.5, 0.35 * len(labels) + 1.2)))
    ypos = list(range(len(labels)))
    plt.barh(ypos, values)
    plt.yticks(ypos, labels, fontsize=8)
    plt.gca().invert_yaxis()
    plt.xlabel("Load time [ms]")
    n_err = len(run_log.failures)
    plt.title(f"Fragment load times ({len(labels)} loaded, {n_err} failed)")
    plt.grid(True, axis="x", alpha=0.3)
    plt.tight_layout()
    out_path = out_dir / file_name
    plt.savefig(out_path, dpi=160)
    plt.close()
    print(f"[OK] timing plot: {len(labels)} fragment(s) → {out_path}")
    return out_path
