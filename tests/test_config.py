import logging

from draftcrane_footnotes.config import ConfigManager


def test_packaged_defaults():
    config = ConfigManager().get_footnote_config()
    assert config["id_prefix"] == "fn"
    assert config["max_history"] == 100
    assert config["max_hook_rounds"] == 4
    assert "contenteditable" in config["editor_only_attributes"]
    assert config["editor_only_class_prefixes"] == ["ProseMirror"]


def test_singleton_until_reset():
    first = ConfigManager()
    assert ConfigManager() is first
    ConfigManager.reset()
    assert ConfigManager() is not first


def test_user_overrides_are_merged(config_dir):
    (config_dir / "footnotes.yml").write_text("id_prefix: note\nmax_history: 5\n", encoding="utf-8")
    config = ConfigManager().get_footnote_config()
    assert config["id_prefix"] == "note"
    assert config["max_history"] == 5
    assert config["max_hook_rounds"] == 4


def test_invalid_user_file_is_ignored(config_dir, caplog):
    (config_dir / "footnotes.yml").write_text("id_prefix: [unclosed\n", encoding="utf-8")
    with caplog.at_level(logging.ERROR, logger="draftcrane_footnotes.config.manager"):
        config = ConfigManager().get_footnote_config()
    assert config["id_prefix"] == "fn"
    assert "Could not parse user config" in caplog.text


def test_returned_footnote_config_is_a_copy():
    ConfigManager().get_footnote_config()["id_prefix"] = "changed"
    assert ConfigManager().get_footnote_config()["id_prefix"] == "fn"


def test_logging_config_is_loaded():
    config = ConfigManager().get_logging_config()
    assert config["version"] == 1
    assert "file" in config["handlers"]
