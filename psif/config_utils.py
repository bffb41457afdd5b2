"""Helper utilities for loading and normalising configuration inputs."""
from __future__ import annotations

import logging
import warnings
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from .errors import ConfigurationError
from .schema import Config

logger = logging.getLogger(__name__)


_BOOL_WORDS = {"true": True, "false": False}
_NULL_WORDS = {"null", "none"}


def parse_override_value(raw: str) -> Any:
    """Convert the text after ``=`` in an override into a config value.

    Config values are booleans, ``null`` axis bounds, integer counts,
    floats (``nan``/``inf`` parse as floats and are rejected by the schema),
    bracketed ranges such as ``[3.4, 5.4]`` and bare words like ``S6``.
    """

    text = raw.strip()
    word = text.lower()
    if word in _BOOL_WORDS:
        return _BOOL_WORDS[word]
    if word in _NULL_WORDS:
        return None
    if text.startswith("[") and text.endswith("]"):
        return [parse_override_value(part) for part in text[1:-1].split(",") if part.strip()]
    for convert in (int, float):
        try:
            return convert(text)
        except ValueError:
            continue
    return text


def _split_override(item: str) -> Tuple[List[str], str]:
    path, sep, value = item.partition("=")
    keys = [key for key in path.strip().split(".") if key]
    if not sep or not keys:
        raise ConfigurationError(f"override {item!r} must look like section.key=value")
    return keys, value


def apply_overrides_dict(payload: Dict[str, Any], overrides: Sequence[str]) -> Dict[str, Any]:
    """Set ``section.key=value`` overrides in ``payload``, creating sections as needed."""

    for item in overrides or ():
        keys, value = _split_override(item)
        node = payload
        for key in keys[:-1]:
            child = node.get(key)
            if child is None:
                child = node[key] = {}
            elif not isinstance(child, dict):
                raise ConfigurationError(f"override {item!r}: {key!r} is not a config section")
            node = child
        node[keys[-1]] = parse_override_value(value)
        logger.debug("override %s = %r", ".".join(keys), node[keys[-1]])
    return payload


def read_overrides_file(path: Path) -> List[str]:
    """Read ``PATH=VALUE`` overrides, one per line; ``#`` starts a comment."""

    source = Path(path)
    if not source.exists():
        raise ConfigurationError(f"Overrides file not found: {source}")
    overrides: List[str] = []
    with source.open("r", encoding="utf-8") as fh:
        for raw_line in fh:
            line = raw_line.split("#", 1)[0].strip()
            if line:
                overrides.append(line)
    return overrides


def build_config(data: Optional[Dict[str, Any]] = None, overrides: Optional[Sequence[str]] = None) -> Config:
    """Validate a configuration mapping (after overrides) into a :class:`Config`."""

    payload: Dict[str, Any] = dict(data or {})
    if overrides:
        payload = apply_overrides_dict(payload, overrides)
    try:
        return Config.model_validate(payload)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration:\n{exc}") from exc


def load_config(path: Optional[Path] = None, overrides: Optional[Sequence[str]] = None) -> Config:
    """Load a YAML configuration file into a :class:`Config` instance.

    ``path=None`` starts from the built-in defaults; overrides apply either way.
    """

    data: Any = {}
    if path is not None:
        from ruamel.yaml import YAML

        yaml = YAML(typ="safe")
        source_path = Path(path).resolve()
        if not source_path.exists():
            raise ConfigurationError(f"Configuration file not found: {source_path}")
        with source_path.open("r", encoding="utf-8") as fh:
            data = yaml.load(fh)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration YAML must encode a mapping at the top level")
        logger.info("loaded configuration from %s", source_path)
    return build_config(data, overrides)


def configure_logging(level: int, suppress_warnings: bool = False) -> None:
    """Configure root logging and optionally silence Python warnings."""

    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    root = logging.getLogger()
    root.setLevel(level)
    if suppress_warnings:
        warnings.filterwarnings("ignore")
    logging.captureWarnings(True)
