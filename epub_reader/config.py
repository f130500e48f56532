"""Reader configuration for epub_reader.

Configuration priority: explicit argument > environment > config file > default.
"""

import json
import os
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any

from .errors import ConfigurationError

ENV_CONFIG_FILE = "EPUB_READER_CONFIG"
ENV_CHAPTER_ORDER = "EPUB_READER_CHAPTER_ORDER"
ENV_HIERARCHY = "EPUB_READER_HIERARCHY"
ENV_DECODE_IMAGES = "EPUB_READER_DECODE_IMAGES"

DEFAULT_COVER_KEYWORDS = ("cover", "Cover", "COVER", "front", "Front")


class ChapterOrder(Enum):
    """How content documents are ordered into chapters."""

    PATH = "path"  # Lexicographic by archive path
    SPINE = "spine"  # OPF spine first, leftovers by path


class HierarchySource(Enum):
    """Where the navigation hierarchy comes from."""

    HEURISTIC = "heuristic"  # Title numbering/indentation/markers
    TOC = "toc"  # NAV or NCX document, heuristic when absent


def _parse_enum(enum_cls: type[Enum], value: Any, parameter: str) -> Enum:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        options = ", ".join(m.value for m in enum_cls)
        raise ConfigurationError(
            f"Invalid value '{value}' (expected one of: {options})",
            parameter=parameter,
        ) from None


def _parse_bool(value: Any, parameter: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"Invalid boolean '{value}'", parameter=parameter)


@dataclass(frozen=True)
class ReaderConfig:
    """Settings that change how an archive is turned into a Book."""

    chapter_order: ChapterOrder = ChapterOrder.PATH
    hierarchy_source: HierarchySource = HierarchySource.HEURISTIC
    decode_images: bool = True  # Drop chapter images Pillow cannot decode
    cover_keywords: tuple[str, ...] = field(default=DEFAULT_COVER_KEYWORDS)

    def __post_init__(self):
        object.__setattr__(
            self, "chapter_order",
            _parse_enum(ChapterOrder, self.chapter_order, "chapter_order"),
        )
        object.__setattr__(
            self, "hierarchy_source",
            _parse_enum(HierarchySource, self.hierarchy_source, "hierarchy_source"),
        )
        object.__setattr__(
            self, "decode_images", _parse_bool(self.decode_images, "decode_images")
        )
        keywords = self.cover_keywords
        if isinstance(keywords, str):
            keywords = (keywords,)
        object.__setattr__(self, "cover_keywords", tuple(keywords))

    @classmethod
    def load(cls, config_file: str | Path | None = None, **overrides: Any) -> "ReaderConfig":
        """Load configuration with priority resolution.

        Priority (highest to lowest):
        1. Explicit keyword overrides (None values are ignored)
        2. Environment variables (EPUB_READER_*)
        3. JSON config file (argument, or EPUB_READER_CONFIG)
        4. Defaults

        Raises:
            ConfigurationError: If a value is present but invalid
        """
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}

        # Priority 3: config file
        if config_file is None:
            config_file = os.environ.get(ENV_CONFIG_FILE)
        if config_file:
            path = Path(config_file)
            if path.exists():
                try:
                    with open(path, encoding="utf-8") as f:
                        file_config = json.load(f)
                except (json.JSONDecodeError, OSError):
                    file_config = {}  # Use defaults if config is invalid
                if isinstance(file_config, dict):
                    values.update({k: v for k, v in file_config.items() if k in known})

        # Priority 2: environment
        env_map = {
            ENV_CHAPTER_ORDER: "chapter_order",
            ENV_HIERARCHY: "hierarchy_source",
            ENV_DECODE_IMAGES: "decode_images",
        }
        for env_name, key in env_map.items():
            if env_value := os.environ.get(env_name):
                values[key] = env_value

        # Priority 1: explicit arguments
        for key, value in overrides.items():
            if key not in known:
                raise ConfigurationError(f"Unknown configuration option '{key}'", parameter=key)
            if value is not None:
                values[key] = value

        return cls(**values)

    def with_overrides(self, **overrides: Any) -> "ReaderConfig":
        """Return a copy with the given non-None values replaced."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "chapter_order": self.chapter_order.value,
            "hierarchy_source": self.hierarchy_source.value,
            "decode_images": self.decode_images,
            "cover_keywords": list(self.cover_keywords),
        }

    def save(self, path: str | Path) -> None:
        """Save configuration to a JSON file."""
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
