# init_FragmentLoader/core/settings.py
from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from .model import LogVisibility

_LOG = logging.getLogger(__name__)

# ----- defaults (used for any key the config leaves out) -----
DEFAULT_DIRECTORY = "~/.config/init-loader/inits"
DEFAULT_PATTERN = r"^[0-9]{2}"
DEFAULT_PLATFORM_PATTERNS: dict[str, str] = {
    "windows": r"^windows-",
    "meadow":  r"^meadow-",
    "carbon":  r"^carbon-emacs-",
    "cocoa":   r"^cocoa-emacs-",
    "linux":   r"^linux-",
    "bsd":     r"^bsd-",
    "nw":      r"^nw-",
}
# kind -> (source suffix, compiled suffix)
FRAGMENT_KINDS: dict[str, tuple[str, str]] = {
    "python": (".py", ".pyc"),
    "yaml":   (".yaml", ".pkl"),
}

_VISIBILITY_ALIASES: dict[str, LogVisibility] = {
    "always": "always",
    "errors_only": "errors_only",
    "errorsonly": "errors_only",
    "error-only": "errors_only",
    "error_only": "errors_only",
    "never": "never",
    "none": "never",
    "off": "never",
}

@dataclass(frozen=True)
class LoaderSettings:
    directory: Path = Path(DEFAULT_DIRECTORY).expanduser()
    kind: str = "python"
    compile: bool = False
    prefer_newer: bool = False
    show_log: LogVisibility = "always"
    default_pattern: re.Pattern[str] = re.compile(DEFAULT_PATTERN)
    platform_patterns: dict[str, re.Pattern[str]] = field(
        default_factory=lambda: {k: re.compile(v) for k, v in DEFAULT_PLATFORM_PATTERNS.items()}
    )
    source_suffix: str = ".py"
    compiled_suffix: str = ".pyc"


def parse_visibility(value) -> LogVisibility:
    """
    Accepts the three policy names plus YAML booleans:
    true -> always, false/None -> never.
    """
    if value is None or value is False:
        return "never"
    if value is True:
        return "always"
    key = str(value).strip().lower()
    if key not in _VISIBILITY_ALIASES:
        raise ValueError(f"unknown show_log value: {value!r}")
    return _VISIBILITY_ALIASES[key]


def _compile_pattern(raw, key: str) -> re.Pattern[str]:
    try:
        return re.compile(str(raw))
    except re.error as e:
        raise ValueError(f"invalid regular expression for {key}: {raw!r} ({e})") from e


def settings_from_config(cfg: Mapping | None) -> LoaderSettings:
    """
    Build LoaderSettings from the ``loader:`` section of config.yaml.
    Missing keys fall back to the module defaults; bad values raise ValueError.
    """
    ldr = (cfg or {}).get("loader", {}) if cfg else {}
    ldr = ldr or {}

    kind = str(ldr.get("kind", "python")).strip().lower()
    if kind not in FRAGMENT_KINDS:
        raise ValueError(f"unknown fragment kind: {kind!r} (expected one of {sorted(FRAGMENT_KINDS)})")
    src_suffix, cmp_suffix = FRAGMENT_KINDS[kind]
    src_suffix = str(ldr.get("source_suffix", src_suffix))
    cmp_suffix = str(ldr.get("compiled_suffix", cmp_suffix))
    if src_suffix == cmp_suffix:
        raise ValueError(f"source and compiled suffix must differ (both {src_suffix!r})")

    patterns = dict(DEFAULT_PLATFORM_PATTERNS)
    overrides = ldr.get("platform_patterns", None)
    if isinstance(overrides, Mapping):
        for fact, raw in overrides.items():
            fact = str(fact)
            if fact not in DEFAULT_PLATFORM_PATTERNS:
                raise ValueError(f"unknown platform pattern key: {fact!r}")
            patterns[fact] = raw
    elif overrides is not None:
        raise ValueError("loader.platform_patterns must be a mapping")

    settings = LoaderSettings(
        directory=Path(str(ldr.get("directory", DEFAULT_DIRECTORY))).expanduser(),
        kind=kind,
        compile=bool(ldr.get("compile", False)),
        prefer_newer=bool(ldr.get("prefer_newer", False)),
        show_log=parse_visibility(ldr.get("show_log", "always")),
        default_pattern=_compile_pattern(ldr.get("default_pattern", DEFAULT_PATTERN), "default_pattern"),
        platform_patterns={k: _compile_pattern(v, f"platform_patterns.{k}") for k, v in patterns.items()},
        source_suffix=src_suffix,
        compiled_suffix=cmp_suffix,
    )
    _LOG.debug("loader settings: %s", settings)
    return settings
