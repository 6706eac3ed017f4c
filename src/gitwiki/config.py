"""Configuration loading from environment variables and gitwiki.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_DEFAULT_REPO_DIR = Path.home() / "wiki"
_CONFIG_FILENAME = "gitwiki.toml"


@dataclass
class ServerConfig:
    """HTTP listener configuration."""

    host: str = "127.0.0.1"
    port: int = 4567


@dataclass
class AuthorConfig:
    """Identity recorded on every commit."""

    name: str = "gitwiki"
    email: str = "gitwiki@localhost"


@dataclass
class WikiConfig:
    """Top-level gitwiki configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    author: AuthorConfig = field(default_factory=AuthorConfig)
    repo_dir: Path = _DEFAULT_REPO_DIR
    homepage: str = "Home"
    pid_file: Path = Path.home() / ".gitwiki" / "gitwiki.pid"
    log_level: str = "INFO"


def load_config(config_path: Path | None = None) -> WikiConfig:
    """Load configuration from environment variables and optional gitwiki.toml.

    Priority: environment variables > gitwiki.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.gitwiki/
        for candidate in [Path.cwd() / _CONFIG_FILENAME, Path.home() / ".gitwiki" / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    server_data = file_data.get("server", {})
    author_data = file_data.get("author", {})

    config = WikiConfig(
        server=ServerConfig(
            host=os.getenv("GITWIKI_HOST", server_data.get("host", "127.0.0.1")),
            port=int(os.getenv("GITWIKI_PORT", server_data.get("port", 4567))),
        ),
        author=AuthorConfig(
            name=os.getenv("GITWIKI_AUTHOR_NAME", author_data.get("name", "gitwiki")),
            email=os.getenv("GITWIKI_AUTHOR_EMAIL", author_data.get("email", "gitwiki@localhost")),
        ),
        repo_dir=Path(
            os.getenv("GITWIKI_REPO", file_data.get("repo_dir", str(_DEFAULT_REPO_DIR)))
        ).expanduser(),
        homepage=os.getenv("GITWIKI_HOMEPAGE", file_data.get("homepage", "Home")),
        pid_file=Path(
            os.getenv("GITWIKI_PID_FILE", file_data.get("pid_file", str(WikiConfig.pid_file)))
        ).expanduser(),
        log_level=os.getenv("GITWIKI_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
    return config
