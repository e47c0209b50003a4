# init_FragmentLoader/core/reports.py
from __future__ import annotations
from pathlib import Path
from typing import Literal
import numpy as np
import pandas as pd
from scipy.io import savemat

from .metrics import timing_summary
from .runlog import RunLog

ReportFormat = Literal["csv", "mat", "both"]

COLUMNS = ["order", "status", "fragment", "elapsed_s", "message"]

def build_dataframe(run_log: RunLog) -> pd.DataFrame:
    """One row per entry (successes first, then failures, each oldest first) + TOTAL row."""
    rows: list[dict] = []
    for i, e in enumerate(run_log.successes, start=1):
        rows.append({"order": i, "status": "ok", "fragment": e.name,
                     "elapsed_s": round(e.elapsed, 6), "message": ""})
    for i, e in enumerate(run_log.failures, start=1):
        rows.append({"order": i, "status": "error", "fragment": e.name,
                     "elapsed_s": np.nan, "message": e.message})

    summary = timing_summary(run_log)
    rows.append({
        "order": np.nan,
        "status": "TOTAL",
        "fragment": f"{summary['n_loaded']} loaded, {summary['n_failed']} failed",
        "elapsed_s": summary["total_s"],
        "message": summary["slowest"] and f"slowest: {summary['slowest']} ({summary['max_s']}s)",
    })
    return pd.DataFrame(rows, columns=COLUMNS)

def _write_csv(df_out: pd.DataFrame, out_csv: Path, title: str) -> None:
    out_csv.parent.mkdir(parents=True, exist_ok=True)
    df_out.to_csv(out_csv, index=False, encoding="utf-8")
    print(f"[OK] wrote report: {title} → {out_csv}")

def _to_mat_cellstr(seq: list[str]) -> np.ndarray:
    """Make a MATLAB column cell array from a list of strings."""
    seq2 = [("" if s is None else str(s)) for s in seq]
    arr = np.empty((len(seq2), 1), dtype=object)
    arr[:, 0] = seq2
    return arr

def _write_mat(df_out: pd.DataFrame, out_mat: Path, varname: str, title: str) -> None:
    """
    Save a MATLAB struct with fields matching the CSV columns.
    Strings become cell arrays (Nx1), numerics become double (Nx1, NaN for failures).
    """
    out_mat.parent.mkdir(parents=True, exist_ok=True)

    def strcol(name: str) -> np.ndarray:
        return _to_mat_cellstr(df_out[name].astype(str).replace("nan", "", regex=False).tolist())

    mat_struct = {
        "order":     df_out["order"].to_numpy(dtype=float).reshape(-1, 1),
        "status":    strcol("status"),
        "fragment":  strcol("fragment"),
        "elapsed_s": df_out["elapsed_s"].to_numpy(dtype=float).reshape(-1, 1),
        "message":   strcol("message"),
    }
    savemat(out_mat, {varname: mat_struct})
    print(f"[OK] wrote report: {title} → {out_mat}")

def write_report(run_log: RunLog,
                 out_base: Path,
                 title: str,
                 fmt: ReportFormat = "csv",
                 mat_variable: str = "run_log") -> None:
    """
    Write the run log in the requested format.
    - out_base is a *base path without extension* (e.g., .../init_log)
    - fmt: "csv" | "mat" | "both"
    - mat_variable: MATLAB variable name of the struct
    """
    if len(run_log) == 0:
        return
    if fmt not in ("csv", "mat", "both"):
        raise ValueError(f"unknown report format: {fmt!r}")
    df_out = build_dataframe(run_log)

    if fmt in ("csv", "both"):
        _write_csv(df_out, out_base.with_suffix(".csv"), title)
    if fmt in ("mat", "both"):
        _write_mat(df_out, out_base.with_suffix(".mat"), mat_variable, title)
