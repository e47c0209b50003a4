# init_FragmentLoader/loaders/yaml_loader.py
from __future__ import annotations
import pickle
from collections.abc import Mapping
from pathlib import Path
import yaml

SOURCE_SUFFIX = ".yaml"
COMPILED_SUFFIX = ".pkl"

def _parse_yaml(path: Path):
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)

def _load_pickle(path: Path):
    with open(path, "rb") as f:
        return pickle.load(f)

def _extract_mapping(obj, fname: str) -> Mapping:
    """A fragment must be a mapping (an empty document counts as {})."""
    if obj is None:
        return {}
    if isinstance(obj, Mapping):
        return obj
    raise TypeError(f"{fname}: fragment must be a mapping, got {type(obj).__name__}")


class YamlFragmentLoader:
    """
    Merges .yaml fragments (or their pickled .pkl form) into one dict.
    Top-level keys of later fragments replace those of earlier ones.
    """

    def __init__(self, namespace: dict | None = None, compiled_suffix: str = COMPILED_SUFFIX):
        self.namespace: dict = namespace if namespace is not None else {}
        self.compiled_suffix = compiled_suffix

    def __call__(self, path: Path) -> None:
        path = Path(path)
        obj = _load_pickle(path) if path.name.endswith(self.compiled_suffix) else _parse_yaml(path)
        self.namespace.update(_extract_mapping(obj, path.name))


def compile_fragment(source: Path, compiled: Path) -> None:
    """Parse ``source`` once and pickle the document next to it."""
    doc = _extract_mapping(_parse_yaml(Path(source)), Path(source).name)
    with open(compiled, "wb") as f:
        pickle.dump(dict(doc), f, protocol=pickle.HIGHEST_PROTOCOL)
