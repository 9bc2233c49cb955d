"""Tests for layout configuration loading."""

import pytest

from mapweaver.config import LayoutConfig, load_config


class TestDefaults:

    def test_collision_defaults(self):
        cfg = LayoutConfig()
        assert cfg.collision.minimum_gap == 10
        assert cfg.collision.container_padding == 20
        assert cfg.collision.header_height == 30
        assert cfg.collision.max_iterations == 100

    def test_lod_defaults(self):
        cfg = LayoutConfig()
        assert cfg.lod.start_percent == 10
        assert cfg.lod.increment_percent == 20

    def test_to_dict_sections(self):
        d = LayoutConfig().to_dict()
        assert set(d) == {'collision', 'layout', 'lod', 'mindmap', 'concept_map'}


class TestLoadConfig:
    """Tests for YAML overrides."""

    def test_explicit_file(self, tmp_path):
        path = tmp_path / 'layout.yaml'
        path.write_text(
            "collision:\n"
            "  minimum_gap: 4\n"
            "layout:\n"
            "  direction: left-right\n"
            "  level_aligned: false\n"
        )
        cfg = load_config(path)
        assert cfg.collision.minimum_gap == 4
        assert cfg.collision.container_padding == 20
        assert cfg.layout.direction == 'left-right'
        assert cfg.layout.level_aligned is False

    def test_unknown_keys_ignored(self, tmp_path, caplog):
        path = tmp_path / 'layout.yaml'
        path.write_text("collision:\n  bogus: 1\nnot_a_section:\n  x: 2\n")
        cfg = load_config(path)
        assert not hasattr(cfg.collision, 'bogus')
        assert 'collision.bogus' in caplog.text
        assert 'not_a_section' in caplog.text

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / 'nope.yaml')

    def test_project_search(self, tmp_path):
        (tmp_path / 'config').mkdir()
        (tmp_path / 'config' / 'mapweaver.yaml').write_text("lod:\n  enabled: false\n")
        cfg = load_config(project_root=tmp_path)
        assert cfg.lod.enabled is False

    def test_dotfile_takes_precedence(self, tmp_path):
        (tmp_path / 'config').mkdir()
        (tmp_path / 'config' / 'mapweaver.yaml').write_text("lod:\n  start_percent: 1\n")
        (tmp_path / '.mapweaver.yaml').write_text("lod:\n  start_percent: 2\n")
        assert load_config(project_root=tmp_path).lod.start_percent == 2

    def test_no_file_gives_defaults(self, tmp_path):
        assert load_config(project_root=tmp_path) == LayoutConfig()

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / 'empty.yaml'
        path.write_text("")
        assert load_config(path) == LayoutConfig()

    def test_top_level_list_gives_defaults(self, tmp_path, caplog):
        path = tmp_path / 'list.yaml'
        path.write_text("- collision\n- lod\n")
        assert load_config(path) == LayoutConfig()
        assert 'must be a mapping' in caplog.text

    @pytest.mark.parametrize('section', ['to_dict', 'USER_CONFIG_ORDER', 'from_dict'])
    def test_non_section_attributes_rejected(self, section, caplog):
        cfg = LayoutConfig.from_dict({section: {'x': 1}, 'lod': {'enabled': False}})
        assert cfg.lod.enabled is False
        assert f"Unknown config section: {section}" in caplog.text
