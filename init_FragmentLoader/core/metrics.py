# init_FragmentLoader/core/metrics.py
from __future__ import annotations
import numpy as np

from .runlog import RunLog

def timing_summary(run_log: RunLog) -> dict:
    elapsed = np.asarray([e.elapsed for e in run_log.successes], dtype=float)
    if elapsed.size == 0:
        return {"n_loaded": 0, "n_failed": len(run_log.failures),
                "total_s": 0.0, "mean_s": 0.0, "max_s": 0.0, "slowest": ""}
    slowest = run_log.successes[int(np.argmax(elapsed))].name
    return {
        "n_loaded": int(elapsed.size),
        "n_failed": len(run_log.failures),
        "total_s": round(float(np.sum(elapsed)), 6),
        "mean_s":  round(float(np.mean(elapsed)), 6),
        "max_s":   round(float(np.max(elapsed)), 6),
        "slowest": slowest,
    }
