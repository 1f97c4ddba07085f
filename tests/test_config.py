import json
import logging

from newspage.config import (
    DEFAULT_CONFIG,
    FALLBACK_THEMES,
    SiteConfig,
    installed_themes,
    load_config,
    save_config,
)
from newspage.context import SiteContext


def test_missing_config_uses_defaults(tmp_path):
    config = load_config(SiteContext.from_root(tmp_path))
    assert config == SiteConfig()
    assert config.to_dict() == {
        "title": "NewsPage",
        "description": "A dynamic news page",
        "theme": "tech",
    }


def test_partial_config_merges_with_defaults(tmp_path):
    ctx = SiteContext.from_root(tmp_path)
    ctx.config_path.write_text(json.dumps({"title": "Daily", "theme": "times", "extra": 1}))
    config = load_config(ctx)
    assert config == SiteConfig(title="Daily", description=DEFAULT_CONFIG.description, theme="times")


def test_corrupt_config_logs_and_uses_defaults(tmp_path, caplog):
    ctx = SiteContext.from_root(tmp_path)
    ctx.config_path.write_text("{not json")
    with caplog.at_level(logging.WARNING, logger="newspage.config"):
        assert load_config(ctx) == SiteConfig()
    assert "Failed to parse config file" in caplog.text

    ctx.config_path.write_text("[1, 2]")
    assert load_config(ctx) == SiteConfig()


def test_unknown_theme_falls_back(tmp_path, caplog):
    ctx = SiteContext.from_root(tmp_path)
    ctx.config_path.write_text(json.dumps({"theme": "neon", "title": 42}))
    with caplog.at_level(logging.WARNING, logger="newspage.config"):
        config = load_config(ctx)
    assert config.theme == "tech"
    assert config.title == "NewsPage"
    assert "neon" in caplog.text


def test_installed_themes(tmp_path):
    ctx = SiteContext.from_root(tmp_path)
    assert installed_themes(ctx) == sorted(FALLBACK_THEMES)

    empty_install = SiteContext(root=tmp_path, install_dir=tmp_path / "no-install")
    assert installed_themes(empty_install) == list(FALLBACK_THEMES)


def test_save_then_load(tmp_path):
    ctx = SiteContext.from_root(tmp_path)
    save_config(ctx, SiteConfig(title="Kurier", description="Nachrichten", theme="tagesschau"))
    assert json.loads(ctx.config_path.read_text(encoding="utf-8")) == {
        "title": "Kurier",
        "description": "Nachrichten",
        "theme": "tagesschau",
    }
    assert load_config(ctx).theme == "tagesschau"
