"""Configuration loader for mdld.toml."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

from .adapters.links import DEFAULT_SCHEMES
from .adapters.stats import WORDS_PER_MINUTE
from .core.errors import ConfigError

CONFIG_NAME = "mdld.toml"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class EngineConfig:
    """The only settings the extraction core reads."""
    words_per_minute: int = WORDS_PER_MINUTE
    external_schemes: frozenset[str] = DEFAULT_SCHEMES


@dataclass
class ReadingConfig:
    """Reading-time configuration."""
    words_per_minute: int = WORDS_PER_MINUTE


@dataclass
class LinkConfig:
    """Link classification configuration."""
    external_schemes: frozenset[str] = DEFAULT_SCHEMES


@dataclass
class IndexConfig:
    """Directory index used to resolve internal links."""
    root: Path | None = None
    suffixes: tuple[str, ...] = (".md",)


@dataclass
class ApiConfig:
    """Local JSON API configuration."""
    host: str = "127.0.0.1"
    port: int = 8765


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "WARNING"


@dataclass
class MarkdownLDConfig:
    """Complete markdown-ld configuration."""
    reading: ReadingConfig = field(default_factory=ReadingConfig)
    links: LinkConfig = field(default_factory=LinkConfig)
    index: IndexConfig = field(default_factory=IndexConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    log: LogConfig = field(default_factory=LogConfig)

    @property
    def engine(self) -> EngineConfig:
        return EngineConfig(
            words_per_minute=self.reading.words_per_minute,
            external_schemes=self.links.external_schemes,
        )


def _positive_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    return value


def load_config(config_path: Path | None = None, index_root: Path | None = None) -> MarkdownLDConfig:
    """
    Load configuration from mdld.toml.

    Search order:
    1. config_path (if provided)
    2. cwd/mdld.toml
    3. index_root/mdld.toml

    Args:
        config_path: Explicit path to config file
        index_root: Document directory for fallback search

    Returns:
        MarkdownLDConfig with resolved settings

    Raises:
        ConfigError: if the file is not valid TOML or holds unusable values
    """
    toml_data: dict[str, Any] = {}

    search_paths = []
    if config_path:
        search_paths.append(config_path)
    search_paths.append(Path.cwd() / CONFIG_NAME)
    if index_root:
        search_paths.append(index_root / CONFIG_NAME)

    for path in search_paths:
        if path.exists():
            try:
                with open(path, "rb") as f:
                    toml_data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ConfigError(f"{path}: {e}") from e
            break

    # Parse reading config
    reading_data = toml_data.get("reading", {})
    reading_config = ReadingConfig(
        words_per_minute=_positive_int(
            reading_data.get("words_per_minute", WORDS_PER_MINUTE), "reading.words_per_minute"
        )
    )

    # Parse link config
    links_data = toml_data.get("links", {})
    schemes = links_data.get("external_schemes")
    if schemes is None:
        link_config = LinkConfig()
    elif isinstance(schemes, list) and all(isinstance(s, str) for s in schemes):
        replace = links_data.get("replace_defaults", False)
        base = frozenset() if replace else DEFAULT_SCHEMES
        link_config = LinkConfig(external_schemes=base | {s.lower() for s in schemes})
    else:
        raise ConfigError("links.external_schemes must be a list of strings")

    # Parse index config
    index_data = toml_data.get("index", {})
    root = index_data.get("root")
    suffixes = index_data.get("suffixes", [".md"])
    if not (isinstance(suffixes, list) and suffixes and all(isinstance(s, str) for s in suffixes)):
        raise ConfigError("index.suffixes must be a non-empty list of strings")
    index_config = IndexConfig(
        root=Path(root) if root else index_root,
        suffixes=tuple(suffixes),
    )

    # Parse API config
    api_data = toml_data.get("api", {})
    api_config = ApiConfig(
        host=api_data.get("host", "127.0.0.1"),
        port=_positive_int(api_data.get("port", 8765), "api.port"),
    )

    # Parse log config
    log_data = toml_data.get("log", {})
    level = str(log_data.get("level", "WARNING")).upper()
    if level not in LOG_LEVELS:
        raise ConfigError(f"log.level must be one of {', '.join(LOG_LEVELS)}, got {level!r}")

    return MarkdownLDConfig(
        reading=reading_config,
        links=link_config,
        index=index_config,
        api=api_config,
        log=LogConfig(level=level),
    )
