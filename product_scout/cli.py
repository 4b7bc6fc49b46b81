#!/usr/bin/env python3
"""
Точка входа для запуска краулера ProductScout через командную строку.

Команды:
  crawl     Обойти домены из конфига и сохранить найденные URL товаров
  check     Проверить один URL браузером: товар или нет
  config    Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования

Команда crawl опции:
  --domain URL        Обойти только указанный домен (можно несколько раз)
  --max-depth INT     Переопределить max_depth
  --limit INT         Макс. число страниц на домен (override max_pages)
  --no-render         Не запускать браузер, только URL-шаблоны
  --json PATH         Сохранить JSON-отчёт в файл
  --pretty            Преформатировать JSON-вывод (отступ 2)

Пример:
  product_scout crawl --config configs/default.yaml --domain https://www.westside.com/ --json products.json
"""
import asyncio
import json
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from product_scout import __version__
from product_scout.config import CrawlerConfig, load_config
from product_scout.engine import check_url, start_crawl
from product_scout.logger import init_logging, logger
from product_scout.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def log_visited(url: str) -> None:
    logger.info("Crawling URL: %s", url)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='ProductScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default='configs/default.yaml',
    show_default=True,
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
    """Группа команд ProductScout CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


def _apply_overrides(cfg: CrawlerConfig, domains, max_depth, limit, no_render) -> CrawlerConfig:
    update = {}
    if domains:
        update['target_domains'] = list(domains)
    if max_depth is not None:
        update['max_depth'] = max_depth
    if limit is not None:
        update['max_pages'] = limit
    if no_render:
        update['render_enabled'] = False
    if not update:
        return cfg
    # model_copy skips validation; rebuild so overrides are checked
    return CrawlerConfig(**{**cfg.model_dump(), **update})


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.option('--domain', '-d', 'domains', multiple=True, help='Стартовый URL домена (override target_domains)')
@click.option('--max-depth', 'max_depth', type=click.IntRange(min=0), default=None, help='Override max_depth')
@click.option('--limit', '-l', 'limit', type=click.IntRange(min=1), default=None,
              help='Макс. число страниц на домен (override max_pages)')
@click.option('--no-render', is_flag=True, help='Только URL-шаблоны, без браузера')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.pass_context
def crawl(ctx, domains, max_depth, limit, no_render, json_output, pretty):
    """Обойти домены и сохранить найденные URL товаров."""
    try:
        cfg = _apply_overrides(ctx.obj['config'], domains, max_depth, limit, no_render)
    except ValidationError as e:
        print_error(f'Неверные параметры: {e}')

    click.echo(f'Crawling {len(cfg.target_domains)} domain(s)')
    try:
        results = asyncio.run(start_crawl(cfg, on_url_visited=log_visited))
    except Exception as e:
        print_error(f'Ошибка при обходе: {e}')

    for domain, urls in results.items():
        click.echo(f'{domain}: {len(urls)} product URLs')

    indent = 2 if pretty else None
    if json_output:
        try:
            saved = render_json(results, json_output, indent=indent)
            click.echo(f'JSON report: {saved}')
        except OSError as e:
            print_error(f'Ошибка при сохранении JSON: {e}')
        return

    click.echo(json.dumps(results, ensure_ascii=False, indent=indent))


@cli.command('check', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.pass_context
def check(ctx, url):
    """Отрендерить URL в браузере и вывести вердикт классификатора."""
    cfg = ctx.obj['config']
    try:
        is_product = asyncio.run(check_url(cfg, url))
    except Exception as e:
        print_error(f'Ошибка при проверке: {e}')
    click.echo(f'{url}: {"product" if is_product else "not a product"}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
