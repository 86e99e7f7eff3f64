from __future__ import annotations

import pytest

from docsift.config import DEFAULT_CACHE_TTL_SECONDS, DEFAULT_TOP_K, EngineSettings


def test_settings_defaults_from_empty_env() -> None:
    settings = EngineSettings.from_env({})

    assert settings.cache_ttl_seconds == DEFAULT_CACHE_TTL_SECONDS
    assert settings.min_text_chars == 20
    assert settings.default_top_k == DEFAULT_TOP_K
    assert settings.ocr_enabled is True
    assert settings.ocr_lang == "eng"


def test_settings_load_overrides_from_env() -> None:
    settings = EngineSettings.from_env(
        {
            "DOCSIFT_CACHE_TTL_SECONDS": "42.5",
            "DOCSIFT_MIN_TEXT_CHARS": "50",
            "DOCSIFT_DEFAULT_TOP_K": "32",
            "DOCSIFT_OCR_ENABLED": "off",
            "DOCSIFT_OCR_LANG": " eng+deu ",
        }
    )

    assert settings.cache_ttl_seconds == 42.5
    assert settings.min_text_chars == 50
    assert settings.default_top_k == 32
    assert settings.ocr_enabled is False
    assert settings.ocr_lang == "eng+deu"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("DOCSIFT_CACHE_TTL_SECONDS", "0"),
        ("DOCSIFT_CACHE_TTL_SECONDS", "soon"),
        ("DOCSIFT_MIN_TEXT_CHARS", "0"),
        ("DOCSIFT_MIN_TEXT_CHARS", "many"),
        ("DOCSIFT_DEFAULT_TOP_K", "33"),
        ("DOCSIFT_DEFAULT_TOP_K", "0"),
        ("DOCSIFT_OCR_ENABLED", "maybe"),
        ("DOCSIFT_OCR_LANG", "   "),
        ("DOCSIFT_DEFAULT_TOP_K", ""),
    ],
)
def test_settings_invalid_values_fail_fast(name: str, value: str) -> None:
    with pytest.raises(ValueError, match=name):
        EngineSettings.from_env({name: value})
