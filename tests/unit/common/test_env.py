import pytest

from common.config.env import get_env_bool, get_env_float, get_env_int, get_env_str


def test_get_env_str_treats_blank_as_unset(monkeypatch):
    monkeypatch.setenv("DAL_TEST_VALUE", "  ")
    assert get_env_str("DAL_TEST_VALUE", "fallback") == "fallback"
    monkeypatch.setenv("DAL_TEST_VALUE", "  value ")
    assert get_env_str("DAL_TEST_VALUE") == "value"


def test_get_env_str_required(monkeypatch):
    monkeypatch.delenv("DAL_TEST_VALUE", raising=False)
    with pytest.raises(KeyError, match="DAL_TEST_VALUE"):
        get_env_str("DAL_TEST_VALUE", required=True)


def test_numeric_parsing(monkeypatch):
    monkeypatch.setenv("DAL_TEST_INT", "12")
    monkeypatch.setenv("DAL_TEST_FLOAT", "0.5")
    assert get_env_int("DAL_TEST_INT") == 12
    assert get_env_float("DAL_TEST_FLOAT") == 0.5
    assert get_env_int("DAL_TEST_MISSING", 3) == 3

    monkeypatch.setenv("DAL_TEST_INT", "1.5")
    with pytest.raises(ValueError, match="must be an integer"):
        get_env_int("DAL_TEST_INT")


@pytest.mark.parametrize("raw, expected", [("true", True), ("ON", True), ("0", False), ("no", False)])
def test_get_env_bool(monkeypatch, raw, expected):
    monkeypatch.setenv("DAL_TEST_BOOL", raw)
    assert get_env_bool("DAL_TEST_BOOL") is expected


def test_get_env_bool_rejects_garbage(monkeypatch):
    monkeypatch.setenv("DAL_TEST_BOOL", "maybe")
    with pytest.raises(ValueError, match="must be a boolean"):
        get_env_bool("DAL_TEST_BOOL")
