"""
Compiler Configuration.

Provides:
- Dialect selection (controls backslash escaping in string literals)
- How constant RDF nodes are embedded in SQL
- Name of the predicate map table used by the empty-table sentinel
- Loading from JSON or YAML files with environment overrides
"""
from __future__ import annotations

from dataclasses import dataclass
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from rdf_mptstore.errors import MPTStoreError
from rdf_mptstore.sql.dialect import Dialect, TermFormat
from rdf_mptstore.storage.tables import DEFAULT_MAP_TABLE

logger = logging.getLogger(__name__)

ENV_DIALECT = "MPTSTORE_DIALECT"
ENV_TERM_FORMAT = "MPTSTORE_TERM_FORMAT"
ENV_MAP_TABLE = "MPTSTORE_MAP_TABLE"
ENV_BACKSLASH_ESCAPE = "MPTSTORE_BACKSLASH_ESCAPE"

_TRUE_STRINGS = ("1", "true", "yes", "on")
_FALSE_STRINGS = ("0", "false", "no", "off")


class ConfigValidationError(MPTStoreError):
    """Configuration validation error."""
    pass


@dataclass
class CompilerConfig:
    """
    Settings for GraphQuerySQLProvider.

    Attributes:
        dialect: Target database
        backslash_escape: Explicit override of the dialect's backslash rule
        term_format: LEXICAL writes bare IRIs and escaped lexical forms,
            NTRIPLES writes complete N-Triples terms
        map_table: Predicate map table referenced by the empty sentinel
    """
    dialect: Dialect = Dialect.POSTGRES
    backslash_escape: Optional[bool] = None
    term_format: TermFormat = TermFormat.LEXICAL
    map_table: str = DEFAULT_MAP_TABLE

    @property
    def effective_backslash_escape(self) -> bool:
        if self.backslash_escape is not None:
            return self.backslash_escape
        return self.dialect.backslash_escape

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dialect": self.dialect.value,
            "backslash_escape": self.backslash_escape,
            "term_format": self.term_format.value,
            "map_table": self.map_table,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CompilerConfig":
        """
        Build a config from plain data.

        Raises:
            ConfigValidationError: On unknown keys or invalid values
        """
        unknown = set(data) - {"dialect", "backslash_escape", "term_format", "map_table"}
        if unknown:
            raise ConfigValidationError(f"Unknown configuration keys: {sorted(unknown)}")

        try:
            dialect = Dialect(str(data.get("dialect", Dialect.POSTGRES.value)).lower())
        except ValueError:
            raise ConfigValidationError(
                f"Unknown dialect {data.get('dialect')!r}; expected one of "
                f"{[d.value for d in Dialect]}"
            ) from None

        try:
            term_format = TermFormat(str(data.get("term_format", TermFormat.LEXICAL.value)).lower())
        except ValueError:
            raise ConfigValidationError(
                f"Unknown term_format {data.get('term_format')!r}; expected one of "
                f"{[f.value for f in TermFormat]}"
            ) from None

        backslash_escape = _parse_bool(data.get("backslash_escape"), "backslash_escape")

        map_table = data.get("map_table", DEFAULT_MAP_TABLE)
        if not isinstance(map_table, str) or not map_table.strip():
            raise ConfigValidationError("map_table must be a non-empty string")

        return cls(
            dialect=dialect,
            backslash_escape=backslash_escape,
            term_format=term_format,
            map_table=map_table.strip(),
        )

    @classmethod
    def for_dialect(cls, dialect: Union[str, Dialect]) -> "CompilerConfig":
        return cls.from_dict({"dialect": Dialect(dialect).value})


def _parse_bool(value: Any, key: str) -> Optional[bool]:
    if value is None or isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ConfigValidationError(f"{key} must be a boolean, got {value!r}")


def _read_file(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigValidationError(f"Configuration in {path} must be a mapping")
    return data


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
    overrides = {}
    for env_key, key in (
        (ENV_DIALECT, "dialect"),
        (ENV_TERM_FORMAT, "term_format"),
        (ENV_MAP_TABLE, "map_table"),
        (ENV_BACKSLASH_ESCAPE, "backslash_escape"),
    ):
        value = environ.get(env_key)
        if value:
            overrides[key] = value
    return overrides


def load_config(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> CompilerConfig:
    """
    Load compiler configuration.

    Values come from the JSON or YAML file at path (if given and present),
    then MPTSTORE_* environment variables override them.

    Args:
        path: Configuration file (.json, .yaml or .yml)
        environ: Environment mapping; defaults to os.environ

    Returns:
        The validated configuration
    """
    data: Dict[str, Any] = {}
    if path is not None:
        path = Path(path)
        if path.exists():
            data.update(_read_file(path))
        else:
            logger.warning(f"Configuration file {path} not found, using defaults")

    overrides = _env_overrides(os.environ if environ is None else environ)
    if overrides:
        logger.debug(f"Configuration overrides from environment: {sorted(overrides)}")
    data.update(overrides)

    return CompilerConfig.from_dict(data)
