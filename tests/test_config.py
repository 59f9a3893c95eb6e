import json
import os

import pytest

from Algo_Trace.config import Config


def test_load_yaml_overrides_known_keys(tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("max_run_steps: 50\ndefault_duration: 4.5\nunknown_key: 1\n")
    Config.load_from_file(str(cfg))
    assert Config.max_run_steps == 50
    assert Config.default_duration == 4.5
    assert not hasattr(Config, "unknown_key")
    assert Config.config_file == str(cfg)


def test_load_resolves_relative_output_dir(tmp_path):
    cfg = tmp_path / "config.json"
    cfg.write_text(json.dumps({"output_dir": "logs"}))
    Config.load_from_file(str(cfg))
    assert Config.output_dir == os.path.join(str(tmp_path), "logs")
    assert Config.output_path("a.jsonl") == os.path.join(str(tmp_path), "logs", "a.jsonl")


def test_log_files_are_merged(tmp_path):
    cfg = tmp_path / "config.json"
    cfg.write_text(json.dumps({"log_files": {"process": {"process_run": False}}}))
    Config.load_from_file(str(cfg))
    assert Config.log_files["process"]["process_run"] is False
    assert Config.log_files["binding"]["process_bound"] is True


def test_private_keys_are_ignored(tmp_path):
    cfg = tmp_path / "config.json"
    cfg.write_text(json.dumps({"_note": "x", "max_run_steps": 7}))
    Config.load_from_file(str(cfg))
    assert not hasattr(Config, "_note")
    assert Config.max_run_steps == 7


def test_invalid_files(tmp_path):
    with pytest.raises(FileNotFoundError):
        Config.load_from_file(str(tmp_path / "missing.json"))
    cfg = tmp_path / "config.json"
    cfg.write_text("[1, 2]")
    with pytest.raises(ValueError):
        Config.load_from_file(str(cfg))


def test_logging_mode_filters_categories():
    Config.logging_mode = ["process"]
    assert Config.is_log_enabled("process", "process_run")
    assert not Config.is_log_enabled("binding", "process_bound")

    Config.logging_mode = ["diagnostic"]
    assert Config.is_log_enabled("binding")
    Config.log_files["binding"]["process_bound"] = False
    assert not Config.is_log_enabled("binding", "process_bound.jsonl")


def test_nothing_is_logged_by_default():
    assert not Config.is_log_enabled("process", "process_run")
