"""YAML configuration loading."""
import pytest

from watchbill.config import WatchbillConfig, load_config


def test_defaults():
    cfg = WatchbillConfig()
    assert cfg.liveness.check_in_interval_minutes == 15
    assert (cfg.rotation.night_start_hour, cfg.rotation.night_end_hour) == (20, 8)
    assert cfg.reminders.reminder1_minutes == 0


def test_load(tmp_path, monkeypatch):
    monkeypatch.delenv("WATCHBILL_DATA_DIR", raising=False)
    p = tmp_path / "watchbill.yaml"
    p.write_text(
        "data_dir: /srv/watchbill\n"
        "log_level: debug\n"
        "liveness:\n  check_in_interval_minutes: 10\n"
        "rotation:\n  night_start_hour: 22\n  night_end_hour: 6\n"
        "reminders:\n  reminder1_minutes: 15\n  reminder2_minutes: 60\n"
    )
    cfg = load_config(str(p))
    assert cfg.data_dir == "/srv/watchbill"
    assert cfg.log_level == "DEBUG"
    assert cfg.liveness.check_in_interval_minutes == 10
    assert cfg.rotation.night_start_hour == 22
    assert cfg.rotation.night_end_hour == 6
    assert cfg.reminders.reminder2_minutes == 60


def test_env_overrides_data_dir(tmp_path, monkeypatch):
    p = tmp_path / "watchbill.yaml"
    p.write_text("data_dir: from-file\n")
    monkeypatch.setenv("WATCHBILL_DATA_DIR", "/tmp/override")
    assert load_config(str(p)).data_dir == "/tmp/override"


def test_empty_file_gives_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("WATCHBILL_DATA_DIR", raising=False)
    p = tmp_path / "empty.yaml"
    p.write_text("")
    cfg = load_config(str(p))
    assert cfg.data_dir == "data"
    assert cfg.liveness.check_in_interval_minutes == 15


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.yaml"))
