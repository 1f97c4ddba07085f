import json
from datetime import date

import pytest
from click.testing import CliRunner

from newspage import bundler
from newspage.cli import cli


@pytest.fixture(autouse=True)
def no_terser(monkeypatch):
    monkeypatch.setattr(bundler.shutil, "which", lambda name: None)


def create_project(tmp_path, monkeypatch):
    articles = tmp_path / "articles"
    articles.mkdir()
    (articles / "hello.md").write_text(
        "---\nid: hello\ntitle: Hello\ndate: 2024-01-01\n---\n\n# Hello\n", encoding="utf-8"
    )
    monkeypatch.chdir(tmp_path)
    return articles


def mock_prompts(monkeypatch, responses):
    responses = iter(responses)

    class MockQuestion:
        def ask(self):
            return next(responses)

    def mock_prompt(*args, **kwargs):
        return MockQuestion()

    monkeypatch.setattr("newspage.cli.questionary.select", mock_prompt)
    monkeypatch.setattr("newspage.cli.questionary.text", mock_prompt)


def test_generate_builds_site(tmp_path, monkeypatch):
    create_project(tmp_path, monkeypatch)
    runner = CliRunner()
    result = runner.invoke(cli, ["generate", "dist"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Built 1 article(s)" in result.output
    catalog = json.loads((tmp_path / "dist" / "articles.json").read_text(encoding="utf-8"))
    assert catalog[0]["id"] == "hello"
    assert (tmp_path / "dist" / "index.html").exists()


def test_generate_failure_exits_nonzero(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    runner = CliRunner()
    result = runner.invoke(cli, ["generate", "dist"])
    assert result.exit_code == 1
    assert "Build failed:" in result.output
    assert "Article directory not found" in result.output


def test_generate_requires_path(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["generate"])
    assert result.exit_code != 0


def test_articles_refresh(tmp_path, monkeypatch):
    create_project(tmp_path, monkeypatch)
    result = CliRunner().invoke(cli, ["articles", "refresh"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Refreshed 1 article(s):" in result.output
    assert "[2024-01-01] Hello  (hello.md)" in result.output


def test_articles_refresh_without_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["articles", "refresh"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Refreshed 0 article(s):" in result.output


def test_articles_add_from_argument(tmp_path, monkeypatch):
    articles = create_project(tmp_path, monkeypatch)
    runner = CliRunner()
    result = runner.invoke(cli, ["articles", "add", "my-first-post"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Created: articles/my-first-post.md" in result.output
    text = (articles / "my-first-post.md").read_text(encoding="utf-8")
    assert "title: my first post" in text
    assert f"date: {date.today().isoformat()}" in text

    # same slug again is refused and the file is kept
    result = runner.invoke(cli, ["articles", "add", "My First Post"])
    assert result.exit_code == 1
    assert "Article already exists: my-first-post.md" in result.output


def test_articles_add_prompts_for_title(tmp_path, monkeypatch):
    articles = create_project(tmp_path, monkeypatch)
    mock_prompts(monkeypatch, ["Election Night"])
    result = CliRunner().invoke(cli, ["articles", "add"], catch_exceptions=False)
    assert result.exit_code == 0
    assert (articles / "election-night.md").exists()


def test_articles_add_aborts_on_cancel(tmp_path, monkeypatch):
    create_project(tmp_path, monkeypatch)
    mock_prompts(monkeypatch, [None])
    result = CliRunner().invoke(cli, ["articles", "add"])
    assert result.exit_code == 1
    assert "Aborted" in result.output


def test_articles_remove(tmp_path, monkeypatch):
    articles = create_project(tmp_path, monkeypatch)
    runner = CliRunner()
    result = runner.invoke(cli, ["articles", "remove", "hello"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Removed: articles/hello.md" in result.output
    assert not (articles / "hello.md").exists()

    result = runner.invoke(cli, ["articles", "remove", "hello"])
    assert result.exit_code == 1
    assert "Article not found: hello" in result.output

    result = runner.invoke(cli, ["articles", "remove"])
    assert result.exit_code == 2


def test_articles_rejects_unknown_action(tmp_path, monkeypatch):
    create_project(tmp_path, monkeypatch)
    result = CliRunner().invoke(cli, ["articles", "publish"])
    assert result.exit_code == 2


def test_config_wizard_saves(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    mock_prompts(monkeypatch, ["Morning Post", "", "guardian"])
    result = CliRunner().invoke(cli, ["config"], catch_exceptions=False)
    assert result.exit_code == 0
    saved = json.loads((tmp_path / "newspage.config.json").read_text(encoding="utf-8"))
    assert saved == {
        "title": "Morning Post",
        "description": "A dynamic news page",
        "theme": "guardian",
    }
    assert "Config saved to newspage.config.json" in result.output


def test_config_wizard_cancel_keeps_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    mock_prompts(monkeypatch, ["Title", "Desc", None])
    result = CliRunner().invoke(cli, ["config"])
    assert result.exit_code == 1
    assert not (tmp_path / "newspage.config.json").exists()


def test_serve_passes_options(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    called = {}

    class DummyServer:
        def __init__(self, ctx, port=None):
            called["root"] = ctx.root
            called["port"] = port

        def start(self, watch=False):
            called["watch"] = watch

    monkeypatch.setattr("newspage.server.EditServer", DummyServer)
    result = CliRunner().invoke(cli, ["serve", "--port", "5050", "--watch"], catch_exceptions=False)
    assert result.exit_code == 0
    assert called == {"root": tmp_path.resolve(), "port": 5050, "watch": True}


def test_no_command_opens_menu(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    called = {}
    monkeypatch.setattr("newspage.interactive.run_menu", lambda ctx: called.setdefault("root", ctx.root))
    result = CliRunner().invoke(cli, [], catch_exceptions=False)
    assert result.exit_code == 0
    assert called["root"] == tmp_path.resolve()


def test_version_option():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "1.0.0" in result.output


def test_module_main_entrypoint():
    from newspage.__main__ import main

    assert callable(main)


def test_import_flavortown(tmp_path, monkeypatch):
    import httpx

    from newspage.importer import FlavortownClient

    monkeypatch.chdir(tmp_path)
    payloads = {
        "/api/v1/users/me": {"display_name": "Ada", "project_ids": [1]},
        "/api/v1/projects/1": {
            "title": "Weather Station",
            "description": "Sensors",
            "created_at": "2024-02-02T00:00:00Z",
        },
        "/api/v1/projects/1/devlogs": {"devlogs": [], "pagination": {"next_page": None}},
    }
    keys = []

    def fake_client(api_key):
        keys.append(api_key)
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=payloads[request.url.path]))
        return FlavortownClient(api_key, http_client=httpx.Client(transport=transport))

    monkeypatch.setattr("newspage.importer.FlavortownClient", fake_client)
    runner = CliRunner()
    result = runner.invoke(
        cli, ["import-flavortown"], env={"FLAVORTOWN_API_KEY": "env-key"}, catch_exceptions=False
    )
    assert result.exit_code == 0
    assert "Wrote articles/weather-station.md" in result.output
    assert keys == ["env-key"]
    assert (tmp_path / "articles" / "weather-station.md").exists()

    result = runner.invoke(cli, ["import-flavortown", "--api-key", "flag-key"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Skipped articles/weather-station.md" in result.output
    assert keys[-1] == "flag-key"


def test_import_flavortown_reports_api_errors(tmp_path, monkeypatch):
    import httpx

    from newspage.importer import FlavortownClient

    monkeypatch.chdir(tmp_path)

    def fake_client(api_key):
        transport = httpx.MockTransport(lambda request: httpx.Response(401, json={"error": "Unauthorized"}))
        return FlavortownClient(api_key, http_client=httpx.Client(transport=transport))

    monkeypatch.setattr("newspage.importer.FlavortownClient", fake_client)
    mock_prompts(monkeypatch, ["typed-key"])
    result = CliRunner().invoke(cli, ["import-flavortown"], env={"FLAVORTOWN_API_KEY": None})
    assert result.exit_code == 1
    assert "Error: Unauthorized" in result.output
