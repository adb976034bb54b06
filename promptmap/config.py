"""Settings read from promptmap.yml."""

import logging
from abc import ABC, abstractproperty
from io import StringIO
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, TextIO, Type, TypeVar

import yaml

from promptmap.layout import DEFAULT_PARAMS, LayoutParams
from promptmap.serializer import SerializeOptions

T = TypeVar("T", bound="Config")

# Configuration file the command line picks up from the working directory.
CONFIG_FILENAME = "promptmap.yml"


class Config(ABC):

    """A YAML mapping of settings with declared keys and defaults.

    Subclasses declare "required" and "optional" keys with their defaults. The
    command line loads promptmap.yml from the working directory (or the file
    given with -c) and validates it before use:

        cfg = MapConfig.load(Path("promptmap.yml"))
        cfg.validate()

    A malformed file is logged and read as empty, so layout and conversion
    fall back to their defaults.
    """

    def __init__(self, path: Optional[Path], data: Mapping[str, Any]):
        self.path = path
        self.data = data

    def __repr__(self) -> str:
        name = self.__class__.__name__
        return f"{name}(path={self.path!r}, data={self.data!r})"

    @abstractproperty
    def required(self) -> Dict[str, Any]:
        """Required configuration keys and their defaults."""

    @abstractproperty
    def optional(self) -> Dict[str, Any]:
        """Optional configuration keys and their defaults."""

    def validate(self, **defaults: Any):
        """Warn about misspelled or missing settings, then fill in defaults.

        Keyword arguments take precedence over declared defaults. Values
        written in the file always win.
        """
        for key in self.required:
            if key not in self.data:
                logging.error("%s: missing %r", self.path, key)
        for key in self.data:
            if key not in self.required and key not in self.optional:
                logging.warning("%s: unknown key %r", self.path, key)
        self.data = {**self.required, **self.optional, **defaults, **self.data}

    @classmethod
    def load(cls: Type[T], path: Path) -> T:
        """Load configuration from a file."""
        with open(path) as f:
            return cls.load_from(path, f)

    @classmethod
    def loads(cls: Type[T], path: Optional[Path], content: str) -> T:
        """Load configuration from a string."""
        return cls.load_from(path, StringIO(content))

    @classmethod
    def load_from(cls: Type[T], path: Optional[Path], content: TextIO) -> T:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as ex:
            logging.error("cannot parse %s: %s", path, ex)
            data = {}
        if data is None:
            data = {}
        if not isinstance(data, dict):
            logging.error("invalid YAML in %s: %s", path, type(data).__name__)
            data = {}
        return cls(path, data)

    def __getitem__(self, key: str) -> Any:
        """Get a configuration value."""
        return self.data[key]

    def get(self, key: str) -> Optional[Any]:
        """Get a configuration value, or None if it does not exist."""
        return self.data.get(key)


class MapConfig(Config):

    """Layout sizes and gaps, and whether convert writes stored node types.

    Every key is optional. The layout keys mirror LayoutParams.
    """

    required: Dict[str, Any] = {}

    optional = {
        **DEFAULT_PARAMS._asdict(),
        "explicit_types": True,
    }

    @staticmethod
    def default() -> "MapConfig":
        cfg = MapConfig(None, {})
        cfg.validate()
        return cfg

    def layout_params(self) -> LayoutParams:
        return LayoutParams(
            horizontal_gap=float(self["horizontal_gap"]),
            vertical_gap=float(self["vertical_gap"]),
            node_width=float(self["node_width"]),
            node_height=float(self["node_height"]),
        )

    def serialize_options(self) -> SerializeOptions:
        return SerializeOptions(use_explicit_types=bool(self["explicit_types"]))
