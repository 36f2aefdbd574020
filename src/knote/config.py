"""Runtime settings, read from the environment."""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_COLOR = "#fff9a8"
DEFAULT_ENCODING = "utf8"
WRITE_STRATEGIES = ("last-write-wins", "compare-version")


@dataclass(frozen=True)
class Settings:
    """Engine and CLI configuration."""

    home: Path
    credentials_path: Path
    token_path: Path
    notes_folder: str = "notes"
    fetch_workers: int = 8
    write_strategy: str = "last-write-wins"
    default_color: str = DEFAULT_COLOR

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``KNOTE_*`` environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``

        Raises:
            ValueError: If a variable holds an unusable value.
        """
        env = os.environ if environ is None else environ

        home = Path(env.get("KNOTE_HOME") or Path.home() / ".knote").expanduser()
        credentials = Path(env.get("KNOTE_CREDENTIALS") or home / "credentials.json")
        token = Path(env.get("KNOTE_TOKEN") or home / "token.json")

        workers_raw = env.get("KNOTE_WORKERS", "8")
        try:
            workers = int(workers_raw)
        except ValueError:
            raise ValueError(f"KNOTE_WORKERS must be an integer, got {workers_raw!r}")
        if workers < 1:
            raise ValueError("KNOTE_WORKERS must be at least 1")

        strategy = env.get("KNOTE_WRITE_STRATEGY", "last-write-wins")
        if strategy not in WRITE_STRATEGIES:
            raise ValueError(
                f"KNOTE_WRITE_STRATEGY must be one of {', '.join(WRITE_STRATEGIES)}"
            )

        return cls(
            home=home,
            credentials_path=credentials.expanduser(),
            token_path=token.expanduser(),
            notes_folder=env.get("KNOTE_FOLDER") or "notes",
            fetch_workers=workers,
            write_strategy=strategy,
            default_color=env.get("KNOTE_DEFAULT_COLOR") or DEFAULT_COLOR,
        )

    def with_overrides(self, **changes) -> "Settings":
        """Return a copy with the non-None ``changes`` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
