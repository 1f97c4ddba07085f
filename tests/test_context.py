from newspage.context import INSTALL_DIR, SERVE_DIR, SiteContext


def test_context_paths(tmp_path):
    ctx = SiteContext.from_root(tmp_path)
    root = tmp_path.resolve()
    assert ctx.root == root
    assert ctx.articles_dir == root / "articles"
    assert ctx.uploads_dir == root / "uploads"
    assert ctx.config_path == root / "newspage.config.json"
    assert ctx.output_dir == root / SERVE_DIR
    assert ctx.article_path("a.md") == root / "articles" / "a.md"


def test_install_assets_are_packaged():
    ctx = SiteContext(root=INSTALL_DIR)
    for name in ("index.html", "article.html", "editor.html"):
        assert (ctx.templates_dir / name).is_file()
    for name in ("index.js", "article.js", "editor.js"):
        assert (ctx.frontend_dir / name).is_file()
    assert sorted(p.stem for p in ctx.themes_dir.glob("*.css")) == [
        "guardian",
        "tagesschau",
        "tech",
        "times",
    ]
    # without an explicit serve dir the output lives under the root
    assert ctx.output_dir == INSTALL_DIR / SERVE_DIR
