# File: tests/test_cli.py
"""Тесты для CLI (`silverfish.cli`) с использованием click.testing.CliRunner.
Проверяют команды `crawl`, `config`, `--version`, а также обработку ошибок.
"""
import asyncio
import json

import pytest
import silverfish.engine as engine_module
from click.testing import CliRunner
from silverfish.cli import cli
from silverfish.engine import CrawlSummary
from silverfish.logger import configure
from silverfish.metrics import Metrics
from silverfish.models import SiteRecord
from silverfish.places import PlaceSourceError
from silverfish.sink import SinkStats


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Без configs/default.yaml в рабочей папке и с восстановлением логгера."""
    monkeypatch.chdir(tmp_path)
    yield tmp_path
    configure(level="INFO")


@pytest.fixture(autouse=True)
def patch_start_crawl(monkeypatch):
    """Патчим start_crawl: фиктивный итог без сетевого обхода."""
    calls = []

    async def fake_crawl(cfg, extra_seeds=()):
        calls.append((cfg, list(extra_seeds)))
        record = SiteRecord(
            url="https://www.joes.test/",
            phone_numbers=("949-555-1212",),
            emails=("hello@joes.test",),
            has_online_ordering=True,
        )
        return CrawlSummary(metrics=Metrics(domains_started=1), stats=SinkStats(written=1, records=[record]))

    monkeypatch.setattr(engine_module, "start_crawl", fake_crawl)
    return calls


def write_config(tmp_path, data):
    cfg_file = tmp_path / "config.json"
    cfg_file.write_text(json.dumps(data), encoding="utf-8")
    return cfg_file


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "Silverfish" in result.output


def test_show_config(tmp_path):
    cfg_file = write_config(tmp_path, {"output_path": "joes.csv", "max_depth": 2})
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["output_path"] == "joes.csv"
    assert data["max_depth"] == 2


def test_bad_config_exits(tmp_path):
    cfg_file = write_config(tmp_path, {"max_depth": 0})
    result = CliRunner().invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 1
    assert "Ошибка загрузки конфигурации" in result.output


def test_crawl_with_seeds(tmp_path, patch_start_crawl):
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["crawl", "--seed", "https://joes.test", "--seed", "https://amy.test", "--output", "out.csv"],
    )
    assert result.exit_code == 0, result.output
    assert "Done: 1 sites written" in result.output
    [(cfg, extra)] = patch_start_crawl
    assert [p.website_uri for p in extra] == ["https://joes.test", "https://amy.test"]
    assert str(cfg.output_path) == "out.csv"


def test_crawl_without_sites_fails():
    result = CliRunner().invoke(cli, ["crawl"])
    assert result.exit_code == 1
    assert "Нет сайтов для обхода" in result.output


def test_crawl_places_flag(patch_start_crawl):
    result = CliRunner().invoke(cli, ["crawl", "--places"])
    assert result.exit_code == 0, result.output
    [(cfg, _)] = patch_start_crawl
    assert cfg.places.enabled is True


def test_crawl_json_report(tmp_path):
    out = tmp_path / "run.json"
    result = CliRunner().invoke(cli, ["crawl", "-s", "https://joes.test", "--json", str(out), "--pretty"])
    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["sites"][0]["url"] == "https://www.joes.test/"
    assert data["sites"][0]["has_online_ordering"] is True
    assert data["metrics"]["domains_started"] == 1
    assert data["sink"]["written"] == 1


def test_crawl_html_report(tmp_path):
    out = tmp_path / "report.html"
    result = CliRunner().invoke(cli, ["crawl", "-s", "https://joes.test", "--html", str(out)])
    assert result.exit_code == 0, result.output
    html = out.read_text(encoding="utf-8")
    assert "949-555-1212" in html


def test_crawl_timeout(monkeypatch):
    async def slow(cfg, extra_seeds=()):
        await asyncio.sleep(2)

    monkeypatch.setattr(engine_module, "start_crawl", slow)
    result = CliRunner().invoke(cli, ["crawl", "-s", "https://joes.test", "--crawl-timeout", "0.2"])
    assert result.exit_code != 0
    assert "не завершён" in result.output


def test_place_source_error(monkeypatch):
    async def broken(cfg, extra_seeds=()):
        raise PlaceSourceError("GOOGLE_MAPS_API_KEY is not set")

    monkeypatch.setattr(engine_module, "start_crawl", broken)
    result = CliRunner().invoke(cli, ["crawl", "--places"])
    assert result.exit_code == 1
    assert "GOOGLE_MAPS_API_KEY" in result.output
