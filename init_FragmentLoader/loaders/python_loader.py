# init_FragmentLoader/loaders/python_loader.py
from __future__ import annotations
import py_compile
import runpy
from pathlib import Path

SOURCE_SUFFIX = ".py"
COMPILED_SUFFIX = ".pyc"


class PythonFragmentLoader:
    """
    Runs .py / .pyc fragments one after another in a shared namespace, so a
    later fragment sees names an earlier one defined (``00_util`` before
    ``10_keys``). Dunder names are not carried over.
    """

    def __init__(self, namespace: dict | None = None):
        self.namespace: dict = namespace if namespace is not None else {}

    def __call__(self, path: Path) -> None:
        # run_path accepts both source and byte-compiled files
        result = runpy.run_path(str(path), init_globals=self.namespace, run_name=Path(path).stem)
        self.namespace.update({k: v for k, v in result.items() if not k.startswith("__")})


def compile_fragment(source: Path, compiled: Path) -> None:
    """Byte-compile ``source`` to ``compiled``; raises py_compile.PyCompileError on syntax errors."""
    py_compile.compile(str(source), cfile=str(compiled), doraise=True)
