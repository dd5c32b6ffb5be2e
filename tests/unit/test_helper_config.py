"""Unit tests for environment-backed configuration."""

import pytest


def test_string_default_and_required(helper_config, monkeypatch) -> None:
    monkeypatch.delenv("STORAGE_BUCKET", raising=False)

    assert helper_config.get_string_val("STORAGE_BUCKET", default="documents") == "documents"
    with pytest.raises(ValueError, match="STORAGE_BUCKET"):
        helper_config.get_string_val("storage_bucket")


def test_blank_values_count_as_unset(helper_config, monkeypatch) -> None:
    monkeypatch.setenv("STORAGE_BUCKET", "   ")

    assert helper_config.get_string_val("STORAGE_BUCKET", default="documents") == "documents"


def test_numbers(helper_config, monkeypatch) -> None:
    monkeypatch.setenv("CHUNK_SIZE", "800")
    monkeypatch.setenv("EMBED_TIMEOUT", "2.5")
    monkeypatch.setenv("QUEUE_CONCURRENCY", "two")

    assert helper_config.get_number_val("CHUNK_SIZE", default=1000) == 800
    assert helper_config.get_number_val("EMBED_TIMEOUT", default=10.0) == 2.5
    with pytest.raises(ValueError, match="not a valid number"):
        helper_config.get_number_val("QUEUE_CONCURRENCY", default=2)


def test_bools_and_lists(helper_config, monkeypatch) -> None:
    monkeypatch.setenv("FLAG", "Yes")
    monkeypatch.setenv("WEIGHTS", "[0.6, 0.4]")
    monkeypatch.setenv("BROKEN", "0.6,0.4")

    assert helper_config.get_bool_val("FLAG", default=False) is True
    assert helper_config.get_list_val("WEIGHTS", element_type=float) == [0.6, 0.4]
    with pytest.raises(ValueError, match="format"):
        helper_config.get_list_val("BROKEN")
