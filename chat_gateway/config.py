from __future__ import annotations

from dataclasses import dataclass
import logging
import os


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    return value if value is not None else default


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value is not None else default


def _get_timeout(name: str, default: float) -> float | None:
    value = os.getenv(name)
    if value is None:
        return default
    if value.strip().lower() in {"", "0", "none", "off"}:
        return None
    return float(value)


def parse_access_codes(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(code.strip() for code in raw.split(",") if code.strip())


@dataclass(frozen=True)
class Settings:
    access_codes: tuple[str, ...]
    request_timeout: float | None
    max_buffer_chars: int
    log_level: str


def get_settings() -> Settings:
    return Settings(
        access_codes=parse_access_codes(_get_env("ACCESS_CODE_LIST")),
        request_timeout=_get_timeout("REQUEST_TIMEOUT", 60.0),
        max_buffer_chars=_get_int("MAX_SSE_BUFFER_CHARS", 1_000_000),
        log_level=_get_env("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a console handler to the package logger once."""
    logger = logging.getLogger("chat_gateway")
    logger.setLevel(level)
    if not any(getattr(h, "_chat_gateway", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, "%Y-%m-%d %H:%M:%S"))
        handler._chat_gateway = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
