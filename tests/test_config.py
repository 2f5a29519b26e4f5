import pytest

from zeicube.core.config import SCAN_TIMEOUT_MS, TARGET_DEVICE_NAME, Settings, load_settings
from zeicube.core.errors import InvalidArgumentError


def _write(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_missing_default_file_yields_defaults():
    settings = load_settings()

    assert settings == Settings()
    assert settings.device_name == TARGET_DEVICE_NAME
    assert settings.scan_timeout_ms == SCAN_TIMEOUT_MS
    assert settings.auto_reconnect is True


def test_file_values_override_defaults(tmp_path):
    path = _write(tmp_path, "adapter: hci1\nscan_timeout_ms: 8000\nauto_reconnect: false\n")
    settings = load_settings(path)

    assert settings.adapter == "hci1"
    assert settings.scan_timeout_ms == 8000
    assert settings.auto_reconnect is False
    assert settings.device_name == TARGET_DEVICE_NAME


def test_empty_file_yields_defaults(tmp_path):
    assert load_settings(_write(tmp_path, "")) == Settings()


def test_unknown_keys_are_ignored(tmp_path):
    settings = load_settings(_write(tmp_path, "colour: blue\nlog_level: DEBUG\n"))
    assert settings.log_level == "DEBUG"


def test_overrides_win_over_file(tmp_path):
    path = _write(tmp_path, "device_name: Desk Cube\n")
    settings = load_settings(path, device_name="Other Cube", adapter=None)

    assert settings.device_name == "Other Cube"
    assert settings.adapter == "hci0"


@pytest.mark.parametrize(
    "text, key",
    [
        ("scan_timeout_ms: soon\n", "scan_timeout_ms"),
        ("scan_timeout_ms: true\n", "scan_timeout_ms"),
        ("auto_reconnect: 1\n", "auto_reconnect"),
        ("adapter: 0\n", "adapter"),
        ("scan_timeout_ms: 0\n", "scan_timeout_ms"),
        ("scan_timeout_ms: -5\n", "scan_timeout_ms"),
        ("log_level: CHATTY\n", "log_level"),
    ],
)
def test_invalid_values_are_rejected(tmp_path, text, key):
    with pytest.raises(InvalidArgumentError) as info:
        load_settings(_write(tmp_path, text))
    assert info.value.argument == key


def test_explicit_missing_file_is_an_error(tmp_path):
    with pytest.raises(InvalidArgumentError, match="not found"):
        load_settings(tmp_path / "nope.yaml")


def test_non_mapping_file_is_rejected(tmp_path):
    with pytest.raises(InvalidArgumentError, match="mapping"):
        load_settings(_write(tmp_path, "- a\n- b\n"))


def test_malformed_yaml_is_rejected(tmp_path):
    with pytest.raises(InvalidArgumentError, match="invalid YAML"):
        load_settings(_write(tmp_path, "adapter: [hci0\n"))


def test_lowercase_log_level_is_accepted(tmp_path):
    assert load_settings(_write(tmp_path, "log_level: debug\n")).log_level == "debug"
