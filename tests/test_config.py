from diet_tracker.config import DEFAULTS, apply_cli_overrides, deep_merge, load_config


class TestLoadConfig:
    def test_defaults_without_file(self, tmp_path):
        config = load_config(tmp_path)
        assert config == DEFAULTS
        config["grocery"]["sort_by"] = "name"
        assert DEFAULTS["grocery"]["sort_by"] == "category"

    def test_file_overrides_nested_keys(self, tmp_path):
        (tmp_path / "config.yaml").write_text("grocery:\n  sort_by: priority\n")
        config = load_config(tmp_path)
        assert config["grocery"]["sort_by"] == "priority"
        assert config["grocery"]["range_days"] == 7
        assert config["daily_view"]["complete_threshold"] == 80

    def test_empty_file(self, tmp_path):
        (tmp_path / "config.yaml").write_text("")
        assert load_config(tmp_path) == DEFAULTS


class TestOverrides:
    def test_flat_flags_map_to_nested(self, tmp_path):
        config = apply_cli_overrides(
            load_config(tmp_path), sort_by="name", show_completed=True, days=3, threshold=90
        )
        assert config["grocery"] == {"range_days": 3, "sort_by": "name", "show_completed": True}
        assert config["daily_view"]["complete_threshold"] == 90

    def test_none_leaves_config(self, tmp_path):
        config = apply_cli_overrides(load_config(tmp_path), sort_by=None, days=None)
        assert config == DEFAULTS

    def test_deep_merge_does_not_mutate(self):
        base = {"a": {"b": 1, "c": 2}}
        merged = deep_merge(base, {"a": {"c": 3}})
        assert merged == {"a": {"b": 1, "c": 3}}
        assert base == {"a": {"b": 1, "c": 2}}
