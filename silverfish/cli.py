# === FILE: silverfish/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска краулера Silverfish через командную строку.

Команды:
  crawl     Найти рестораны, обойти их сайты и записать CSV с контактами
  config    Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования (e.g. "%(asctime)s %(levelname)s %(message)s")

Команда crawl опции:
  --output PATH       CSV с результатами (override output_path)
  --seed URL          Дополнительный сайт для обхода (можно несколько раз)
  --places/--no-places  Включить/выключить поиск через Google Places
  --json PATH         Сохранить JSON-отчёт о запуске
  --html PATH         Сохранить HTML-отчёт о запуске
  --template DIR      Папка с Jinja2-шаблоном report.html.j2
  --pretty            Преформатировать JSON-отчёт (отступ 2)
  --crawl-timeout SEC Таймаут всего обхода (секунд)

Дополнительно:
  --version, -v       Показать версию Silverfish

Пример:
  silverfish crawl --config configs/default.yaml --seed https://example.com --json run.json --pretty
"""
import asyncio
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from silverfish import __version__
from silverfish.engine import Engine
from silverfish.logger import init_logging
from silverfish.models import Place
from silverfish.places import PlaceSourceError
from silverfish.report.html_report import render_html
from silverfish.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='Silverfish, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд Silverfish CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = Engine.load_config(config_path)
    except (OSError, ValueError, TypeError, ValidationError) as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.option(
    '--output', '-o', 'output_path',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='CSV-файл с результатами (override output_path)'
)
@click.option(
    '--seed', '-s', 'seeds',
    multiple=True,
    help='Сайт ресторана для обхода (можно указать несколько раз)'
)
@click.option(
    '--places/--no-places', 'use_places',
    default=None,
    help='Искать рестораны через Google Places (override places.enabled)'
)
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить HTML-отчёт в файл'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Папка с Jinja2-шаблонами (по умолчанию встроенный шаблон)'
)
@click.option(
    '--pretty', is_flag=True,
    help='Преформатировать JSON-вывод (отступ 2)'
)
@click.option(
    '--crawl-timeout', 'crawl_timeout',
    type=float,
    default=None,
    help='Таймаут всего обхода (секунд)'
)
@click.pass_context
def crawl(ctx, output_path, seeds, use_places, json_output, html_output, template_dir, pretty, crawl_timeout):
    """Обойти сайты ресторанов и записать контакты в CSV."""
    cfg = ctx.obj['config']
    updates = {}
    if output_path is not None:
        updates['output_path'] = output_path
    if use_places is not None:
        updates['places'] = cfg.places.model_copy(update={'enabled': use_places})
    if updates:
        cfg = cfg.model_copy(update=updates)

    extra = [Place(name=url, website_uri=url) for url in seeds]
    if not cfg.places.enabled and not cfg.seeds and not extra:
        print_error('Нет сайтов для обхода: укажите --seed, seeds в конфиге или --places')

    click.echo(f'Starting crawl, results -> {cfg.output_path}')
    try:
        summary = Engine(cfg).start_crawl(extra_seeds=extra, timeout=crawl_timeout)
    except asyncio.TimeoutError:
        print_error(f'Обход не завершён за {crawl_timeout} секунд')
    except PlaceSourceError as e:
        print_error(f'Ошибка получения списка ресторанов: {e}')
    except OSError as e:
        print_error(f'Ошибка при обходе: {e}')

    click.echo(
        f'Done: {summary.stats.written} sites written, '
        f'{summary.stats.duplicates} duplicate domains skipped'
    )

    if json_output:
        try:
            saved_json = render_json(summary, json_output, pretty=pretty)
            click.echo(f'JSON report: {saved_json}')
        except (OSError, TypeError) as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    if html_output:
        try:
            saved_html = render_html(summary, template_dir, html_output)
            click.echo(f'HTML report: {saved_html}')
        except Exception as e:
            print_error(f'Ошибка при сохранении HTML: {e}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
