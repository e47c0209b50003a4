# init_FragmentLoader/core/name_filter.py
from __future__ import annotations
import logging
import os
import re
from pathlib import Path
from typing import Callable, Iterable

_LOG = logging.getLogger(__name__)

Lister = Callable[[Path], Iterable[str]]

def _listdir(directory: Path) -> list[str]:
    return os.listdir(directory)

def select(pattern: re.Pattern[str],
           directory: Path,
           sort: bool,
           *,
           source_suffix: str,
           compiled_suffix: str,
           listdir: Lister = _listdir) -> list[str]:
    """
    Base names directly under ``directory`` that are fragments for this pass.

    - ``pattern.search`` must match the base name
    - a compiled entry is always kept
    - a source entry is dropped when its compiled sibling is listed too
      (the compiled one stands in for it)
    - anything with neither suffix is not a fragment
    sort=True -> ascending code point order, else enumeration order.
    """
    names = list(listdir(directory))
    present = set(names)

    out: list[str] = []
    for name in names:
        if not pattern.search(name):
            continue
        if name.endswith(compiled_suffix):
            out.append(name)
        elif name.endswith(source_suffix):
            sibling = name[: -len(source_suffix)] + compiled_suffix
            if sibling in present:
                _LOG.debug("skip %s: superseded by %s", name, sibling)
                continue
            out.append(name)

    if sort:
        out.sort()
    _LOG.debug("select %r in %s -> %d candidate(s)", pattern.pattern, directory, len(out))
    return out

def strip_suffix(name: str, source_suffix: str, compiled_suffix: str) -> str:
    """Logical fragment name (extension removed)."""
    # longest first so ".pyc" is not mistaken for ".py" + "c"
    for suffix in sorted((source_suffix, compiled_suffix), key=len, reverse=True):
        if name.endswith(suffix):
            return name[: -len(suffix)]
    return name
