# init_FragmentLoader/main.py
from __future__ import annotations
from pathlib import Path
import logging
import sys
import yaml

from .core.errors import FatalSessionError
from .core.plotting import save_timing_plot
from .core.reports import write_report
from .core.session import StartupNotifier, run_session
from .core.settings import settings_from_config
from .loaders import python_loader, yaml_loader
from .utils.detect import apply_overrides, detect_platform

def load_config(cfg_path: Path) -> dict:
    with cfg_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}

def main(argv: list[str] | None = None) -> int:
    # ---------- config ----------
    argv = sys.argv[1:] if argv is None else argv
    here = Path(__file__).resolve().parent
    cfg_path = Path(argv[0]).expanduser() if argv else here / "config.yaml"
    cfg = load_config(cfg_path)

    verbose = bool(cfg.get("logging", {}).get("verbose", True))
    logging.basicConfig(level=logging.INFO if verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")
    settings = settings_from_config(cfg)
    if verbose:
        print(f"[cfg] directory={settings.directory} (kind={settings.kind}, compile={settings.compile})")
        print(f"[cfg] show_log={settings.show_log}")

    # ---------- platform ----------
    facts = apply_overrides(detect_platform(), cfg)
    if verbose:
        on = [name for name, value in vars(facts).items() if value]
        print(f"[platform] {', '.join(on) or 'none'}")

    # ---------- loader registry ----------
    namespace: dict = {}
    registry = {
        "python": (python_loader.PythonFragmentLoader(namespace), python_loader.compile_fragment),
        "yaml":   (yaml_loader.YamlFragmentLoader(namespace, settings.compiled_suffix), yaml_loader.compile_fragment),
    }
    loader, compiler = registry[settings.kind]

    notifier = StartupNotifier()
    try:
        session = run_session(settings.directory, facts, settings,
                              loader=loader, compiler=compiler, notifier=notifier)
    except FatalSessionError as e:
        print(f"[ERROR] {e}")
        return 2

    run_log = session.run_log
    if verbose:
        print(f"[summary] {len(run_log.successes)} loaded, {len(run_log.failures)} failed, "
              f"{len(namespace)} name(s) defined")

    # ---------- reports ----------
    rep = cfg.get("reports", {}) or {}
    if rep.get("output"):
        out_root = Path(str(rep["output"])).expanduser().resolve()
        fmt = str(rep.get("format", "csv")).lower()
        mat_var = str(rep.get("mat_variable", "run_log"))
        write_report(run_log, out_root / "init_log", "init log", fmt=fmt, mat_variable=mat_var)
        if bool(rep.get("timing_plot", True)):
            save_timing_plot(run_log, out_root)
    elif verbose:
        print("[INFO] no reports.output configured; skipping reports.")

    # end of start-up: deferred log presentation happens here
    notifier.notify()
    return 1 if run_log.has_failures else 0

if __name__ == "__main__":
    sys.exit(main())
