"""Load musikbrowse configuration from a TOML file."""

from __future__ import annotations

import string
import tomllib
from dataclasses import dataclass
from pathlib import Path

DEFAULT_CONFIG_PATH = Path("~/.config/musikbrowse/config.toml").expanduser()

REGEX_TYPES = ("regex", "literal", "glob")
SORT_MODES = ("name", "mtime")


class ConfigError(ValueError):
    """Raised when a configuration value is not recognised."""


@dataclass
class Config:
    """Musikbrowse configuration."""

    mpd_host: str = "localhost"
    mpd_port: int = 6600
    mpd_music_dir: str | None = None
    song_format: str = "{artist} - {title}"
    playlist_prefix: str = "playlist: "
    regex_type: str = "regex"
    sort_mode: str = "name"
    show_hidden_files: bool = False
    home_dir: str | None = None
    start_local: bool = False
    log_level: str = "WARNING"
    log_file: str | None = None

    def home_directory(self) -> str:
        """Return the local start directory without a trailing separator."""
        home = self.home_dir if self.home_dir else str(Path.home())
        if len(home) > 1:
            home = home.rstrip("/")
        return home


def load_config(path: Path | str) -> Config:
    """Load configuration from a TOML file.

    Returns a :class:`Config` with defaults for any missing keys.
    If the file does not exist, returns a default :class:`Config`.
    Raises :class:`ConfigError` for unknown ``regex-type`` or
    ``sort-mode`` values and for a ``song-format`` that does not parse.
    """
    path = Path(path)
    if not path.is_file():
        return Config()

    with open(path, "rb") as f:
        data = tomllib.load(f)

    mpd = data.get("mpd", {})

    cfg = Config(
        mpd_host=mpd.get("host", Config.mpd_host),
        mpd_port=int(mpd.get("port", Config.mpd_port)),
        mpd_music_dir=mpd.get("music-dir"),
        song_format=data.get("song-format", Config.song_format),
        playlist_prefix=data.get("playlist-prefix", Config.playlist_prefix),
        regex_type=data.get("regex-type", Config.regex_type),
        sort_mode=data.get("sort-mode", Config.sort_mode),
        show_hidden_files=data.get("show-hidden-files", Config.show_hidden_files),
        home_dir=data.get("home-dir"),
        start_local=data.get("start-local", Config.start_local),
        log_level=data.get("log-level", Config.log_level),
        log_file=data.get("log-file"),
    )

    if cfg.regex_type not in REGEX_TYPES:
        raise ConfigError(
            f"Unknown regex-type '{cfg.regex_type}', expected one of {REGEX_TYPES}."
        )
    if cfg.sort_mode not in SORT_MODES:
        raise ConfigError(
            f"Unknown sort-mode '{cfg.sort_mode}', expected one of {SORT_MODES}."
        )
    _check_song_format(cfg.song_format)
    return cfg


def _check_song_format(fmt: str) -> None:
    try:
        fields = [
            name for _, name, _, _ in string.Formatter().parse(fmt) if name is not None
        ]
    except ValueError as exc:
        raise ConfigError(f"Invalid song-format '{fmt}': {exc}.") from exc
    if any(not name or name[0].isdigit() for name in fields):
        raise ConfigError(
            f"Invalid song-format '{fmt}': fields must be tag names like {{artist}}."
        )
