# init_FragmentLoader/utils/detect.py
from __future__ import annotations
import dataclasses
import os
import sys
from typing import Mapping

from ..core.model import PlatformFacts

_BSD_PREFIXES = ("freebsd", "openbsd", "netbsd", "dragonfly")

def _has_display(env: Mapping[str, str], platform: str) -> bool:
    """
    Unix-likes need DISPLAY or WAYLAND_DISPLAY; Windows and macOS count as
    graphical unless this is an SSH session.
    """
    if platform.startswith("win") or platform == "darwin":
        return not env.get("SSH_CONNECTION")
    return bool(env.get("DISPLAY") or env.get("WAYLAND_DISPLAY"))

def detect_platform(env: Mapping[str, str] | None = None, platform: str | None = None) -> PlatformFacts:
    """
    Probe the running interpreter once.
    - win32  -> windows
    - darwin -> darwin (+ cocoa when a display is available)
    - linux  -> linux
    - *bsd   -> bsd
    Meadow and Carbon have no Python-side signal; they only come from overrides.
    """
    env = os.environ if env is None else env
    platform = sys.platform if platform is None else platform

    graphical = _has_display(env, platform)
    darwin = platform == "darwin"
    return PlatformFacts(
        windows=platform.startswith("win"),
        darwin=darwin,
        cocoa=darwin and graphical,
        linux=platform.startswith("linux"),
        bsd=platform.startswith(_BSD_PREFIXES),
        graphical_display=graphical,
    )

def apply_overrides(facts: PlatformFacts, cfg: dict | None) -> PlatformFacts:
    """Merge the ``platform:`` section of config.yaml over probed facts."""
    over = (cfg or {}).get("platform", {}) if cfg else {}
    if not over:
        return facts
    known = {f.name for f in dataclasses.fields(PlatformFacts)}
    unknown = set(over) - known
    if unknown:
        raise ValueError(f"unknown platform fact(s): {', '.join(sorted(unknown))}")
    return dataclasses.replace(facts, **{k: bool(v) for k, v in over.items()})
