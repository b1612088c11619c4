from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional


@dataclass
class Settings:
    """Runtime settings for the HTTP service and CLI.

    Values come from defaults, then ``GAMBIT_*`` environment variables, then
    explicit CLI flags.
    """

    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    # Depth used by the best-move endpoint when the caller does not pass one
    default_depth: int = 3
    max_depth: int = 6
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    def __post_init__(self) -> None:
        if not (0 < self.port < 65536):
            raise ValueError(f"invalid port: {self.port}")
        if self.default_depth < 1 or self.max_depth < self.default_depth:
            raise ValueError("depth settings must satisfy 1 <= default_depth <= max_depth")
        if logging.getLevelName(self.log_level.upper()) == f"Level {self.log_level.upper()}":
            raise ValueError(f"invalid log level: {self.log_level!r}")
        self.log_level = self.log_level.upper()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``GAMBIT_*`` variables.

        Raises:
            ValueError: If a numeric variable does not parse or a value is out
                of range.
        """
        env = os.environ if environ is None else environ
        kwargs: dict = {}
        if "GAMBIT_HOST" in env:
            kwargs["host"] = env["GAMBIT_HOST"]
        for key, name in (
            ("GAMBIT_PORT", "port"),
            ("GAMBIT_DEFAULT_DEPTH", "default_depth"),
            ("GAMBIT_MAX_DEPTH", "max_depth"),
        ):
            if key in env:
                try:
                    kwargs[name] = int(env[key])
                except ValueError as e:
                    raise ValueError(f"{key} must be an integer") from e
        if "GAMBIT_LOG_LEVEL" in env:
            kwargs["log_level"] = env["GAMBIT_LOG_LEVEL"]
        if "GAMBIT_CORS_ORIGINS" in env:
            kwargs["cors_origins"] = [
                o.strip() for o in env["GAMBIT_CORS_ORIGINS"].split(",") if o.strip()
            ]
        return cls(**kwargs)


def configure_logging(level: str = "INFO") -> None:
    # Basic logging setup shared by the server, UCI, and CLI entry points
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
