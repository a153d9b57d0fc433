"""Configuration management for multispa.

Supports TOML configuration format with auto-discovery.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path

from multispa.core.pages import DEFAULT_PAGES_ROOT, normalize_pages_root

CONFIG_FILENAME = "multispa.toml"


@dataclass
class ServerConfig:
    """Dev server configuration."""

    host: str = "127.0.0.1"
    port: int = 5173


@dataclass
class PagesConfig:
    """Page discovery configuration."""

    root_dir: Path = field(default_factory=Path.cwd)
    pages_root: str = DEFAULT_PAGES_ROOT
    transforms: list[str] = field(default_factory=list)


@dataclass
class BuildConfig:
    """Build output configuration."""

    out_dir: Path = field(default_factory=lambda: Path("dist"))
    environments: list[str] = field(default_factory=lambda: ["client"])
    manifest: bool = True


@dataclass
class LiveReloadConfig:
    """Live reload configuration."""

    enabled: bool = True
    watch_patterns: list[str] | None = None


@dataclass
class Config:
    """Application configuration."""

    server: ServerConfig
    pages: PagesConfig
    redirects: dict[str, str]
    build: BuildConfig
    live_reload: LiveReloadConfig
    config_path: Path | None = None

    @classmethod
    def load(cls, config_path: Path | None = None) -> Config:
        """Load configuration from file.

        If config_path is provided, loads from that file.
        Otherwise, searches for multispa.toml in current directory and parents.

        Args:
            config_path: Optional explicit path to config file

        Returns:
            Config instance with defaults for missing sections

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ValueError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls._load_from_file(config_path)

        discovered_path = cls._discover_config()
        if discovered_path is None:
            return cls._default()

        return cls._load_from_file(discovered_path)

    @classmethod
    def _discover_config(cls) -> Path | None:
        """Search for config file in current directory and parents.

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            parent = current.parent
            if parent == current:
                return None
            current = parent

    @classmethod
    def _default(cls) -> Config:
        """Create config with all defaults, rooted at the current directory."""
        root_dir = Path.cwd()
        return cls(
            server=ServerConfig(),
            pages=PagesConfig(root_dir=root_dir),
            redirects={},
            build=BuildConfig(out_dir=root_dir / "dist"),
            live_reload=LiveReloadConfig(),
        )

    @classmethod
    def _load_from_file(cls, path: Path) -> Config:
        """Load configuration from a specific file.

        The directory containing the file is the project root.

        Raises:
            ValueError: If configuration is invalid
        """
        with path.open("rb") as f:
            data = tomllib.load(f)

        config_dir = path.parent.resolve()

        return cls(
            server=cls._parse_server(data.get("server")),
            pages=cls._parse_pages(data.get("pages"), config_dir),
            redirects=cls._parse_redirects(data.get("redirects")),
            build=cls._parse_build(data.get("build"), config_dir),
            live_reload=cls._parse_live_reload(data.get("live_reload")),
            config_path=path,
        )

    @classmethod
    def _parse_server(cls, data: object) -> ServerConfig:
        if data is None:
            return ServerConfig()

        if not isinstance(data, dict):
            raise ValueError("server section must be a dictionary")

        host = data.get("host", "127.0.0.1")
        if not isinstance(host, str):
            raise ValueError("server.host must be a string")

        port = data.get("port", 5173)
        if not isinstance(port, int) or isinstance(port, bool):
            raise ValueError("server.port must be an integer")

        return ServerConfig(host=host, port=port)

    @classmethod
    def _parse_pages(cls, data: object, config_dir: Path) -> PagesConfig:
        """Parse pages configuration section.

        Args:
            data: Raw pages section data
            config_dir: Directory containing config file (project root)

        Returns:
            PagesConfig instance
        """
        if data is None:
            return PagesConfig(root_dir=config_dir)

        if not isinstance(data, dict):
            raise ValueError("pages section must be a dictionary")

        pages_root = data.get("root", DEFAULT_PAGES_ROOT)
        if not isinstance(pages_root, str):
            raise ValueError("pages.root must be a string")

        transforms = _parse_string_list(data.get("transforms", []), "pages.transforms")

        return PagesConfig(
            root_dir=config_dir,
            pages_root=normalize_pages_root(pages_root),
            transforms=transforms,
        )

    @classmethod
    def _parse_redirects(cls, data: object) -> dict[str, str]:
        """Parse redirects table, keeping declaration order."""
        if data is None:
            return {}

        if not isinstance(data, dict):
            raise ValueError("redirects section must be a dictionary")

        redirects: dict[str, str] = {}
        for pattern, target in data.items():
            if not isinstance(target, str):
                raise ValueError(f"redirects.{pattern!r} target must be a string")
            redirects[pattern] = target
        return redirects

    @classmethod
    def _parse_build(cls, data: object, config_dir: Path) -> BuildConfig:
        if data is None:
            return BuildConfig(out_dir=config_dir / "dist")

        if not isinstance(data, dict):
            raise ValueError("build section must be a dictionary")

        out_dir = data.get("out_dir", "dist")
        if not isinstance(out_dir, str):
            raise ValueError("build.out_dir must be a string")

        environments = _parse_string_list(
            data.get("environments", ["client"]),
            "build.environments",
        )

        manifest = data.get("manifest", True)
        if not isinstance(manifest, bool):
            raise ValueError("build.manifest must be a boolean")

        return BuildConfig(
            out_dir=config_dir / out_dir,
            environments=environments,
            manifest=manifest,
        )

    @classmethod
    def _parse_live_reload(cls, data: object) -> LiveReloadConfig:
        if data is None:
            return LiveReloadConfig()

        if not isinstance(data, dict):
            raise ValueError("live_reload section must be a dictionary")

        enabled = data.get("enabled", True)
        if not isinstance(enabled, bool):
            raise ValueError("live_reload.enabled must be a boolean")

        watch_patterns_raw = data.get("watch_patterns")
        watch_patterns: list[str] | None = None
        if watch_patterns_raw is not None:
            watch_patterns = _parse_string_list(
                watch_patterns_raw,
                "live_reload.watch_patterns",
            )

        return LiveReloadConfig(enabled=enabled, watch_patterns=watch_patterns)

    def with_overrides(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        root_dir: Path | None = None,
        pages_root: str | None = None,
        out_dir: Path | None = None,
        live_reload_enabled: bool | None = None,
    ) -> Config:
        """Create a new Config with CLI overrides applied.

        Only non-None values override the existing config. This follows
        the immutable pattern - the original Config is not modified.

        Args:
            host: Override server.host
            port: Override server.port
            root_dir: Override the project root
            pages_root: Override pages.root
            out_dir: Override build.out_dir
            live_reload_enabled: Override live_reload.enabled

        Returns:
            New Config instance with overrides applied
        """
        server = self.server
        if host is not None or port is not None:
            server = replace(
                self.server,
                host=host if host is not None else self.server.host,
                port=port if port is not None else self.server.port,
            )

        pages = self.pages
        if root_dir is not None or pages_root is not None:
            pages = replace(
                self.pages,
                root_dir=root_dir if root_dir is not None else self.pages.root_dir,
                pages_root=(
                    normalize_pages_root(pages_root)
                    if pages_root is not None
                    else self.pages.pages_root
                ),
            )

        build = self.build
        if out_dir is not None:
            build = replace(self.build, out_dir=out_dir)

        live_reload = self.live_reload
        if live_reload_enabled is not None:
            live_reload = replace(self.live_reload, enabled=live_reload_enabled)

        return replace(
            self,
            server=server,
            pages=pages,
            build=build,
            live_reload=live_reload,
        )


def _parse_string_list(data: object, key: str) -> list[str]:
    if not isinstance(data, list):
        raise ValueError(f"{key} must be a list")
    items: list[str] = []
    for item in data:
        if not isinstance(item, str):
            raise ValueError(f"{key} items must be strings")
        items.append(item)
    return items
