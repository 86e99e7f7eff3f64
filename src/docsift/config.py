"""Runtime configuration for the extraction and retrieval engine."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Mapping


DEFAULT_CACHE_TTL_SECONDS = 300.0
DEFAULT_MIN_TEXT_CHARS = 20
DEFAULT_TOP_K = 8
DEFAULT_OCR_LANG = "eng"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_positive_int(*, name: str, raw_value: str, minimum: int = 1, maximum: int | None = None) -> int:
    try:
        value = int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    if maximum is not None and value > maximum:
        raise ValueError(f"{name} must be <= {maximum}")
    return value


def _parse_positive_float(*, name: str, raw_value: str) -> float:
    try:
        value = float(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number") from exc
    if value <= 0:
        raise ValueError(f"{name} must be > 0")
    return value


def _parse_bool(*, name: str, raw_value: str) -> bool:
    lowered = raw_value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag")


@dataclass(frozen=True, slots=True)
class EngineSettings:
    """Validated engine settings."""

    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS
    min_text_chars: int = DEFAULT_MIN_TEXT_CHARS
    default_top_k: int = DEFAULT_TOP_K
    ocr_enabled: bool = True
    ocr_lang: str = DEFAULT_OCR_LANG

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "EngineSettings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        ttl_raw = source.get("DOCSIFT_CACHE_TTL_SECONDS", str(DEFAULT_CACHE_TTL_SECONDS)).strip()
        min_chars_raw = source.get("DOCSIFT_MIN_TEXT_CHARS", str(DEFAULT_MIN_TEXT_CHARS)).strip()
        top_k_raw = source.get("DOCSIFT_DEFAULT_TOP_K", str(DEFAULT_TOP_K)).strip()
        ocr_enabled_raw = source.get("DOCSIFT_OCR_ENABLED", "true").strip()
        ocr_lang = source.get("DOCSIFT_OCR_LANG", DEFAULT_OCR_LANG).strip()

        if not ttl_raw:
            raise ValueError("DOCSIFT_CACHE_TTL_SECONDS cannot be empty")
        if not min_chars_raw:
            raise ValueError("DOCSIFT_MIN_TEXT_CHARS cannot be empty")
        if not top_k_raw:
            raise ValueError("DOCSIFT_DEFAULT_TOP_K cannot be empty")
        if not ocr_lang:
            raise ValueError("DOCSIFT_OCR_LANG cannot be empty")

        return cls(
            cache_ttl_seconds=_parse_positive_float(name="DOCSIFT_CACHE_TTL_SECONDS", raw_value=ttl_raw),
            min_text_chars=_parse_positive_int(name="DOCSIFT_MIN_TEXT_CHARS", raw_value=min_chars_raw),
            default_top_k=_parse_positive_int(
                name="DOCSIFT_DEFAULT_TOP_K",
                raw_value=top_k_raw,
                minimum=1,
                maximum=32,
            ),
            ocr_enabled=_parse_bool(name="DOCSIFT_OCR_ENABLED", raw_value=ocr_enabled_raw),
            ocr_lang=ocr_lang,
        )
