# === FILE: site_auditor/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска SiteAuditor через командную строку.

Команды:
  site URL    Аудит всего сайта: обход, проверка каждой страницы, сводка
  page URL    Аудит одной страницы
  config      Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --api-key KEY       Ключ PageSpeed Insights (или переменная PAGESPEED_API_KEY)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования

Команда site опции:
  --max-pages N       Макс. число страниц (override max_pages, 1..100)
  --save              Сохранить JSON-отчёт в каталог --output
  --output DIR        Каталог для --save (default: output_dir из конфига)
  --json PATH         Сохранить JSON-отчёт в файл ('-' для stdout)
  --pretty            Преформатировать JSON-вывод (отступ 2)

Дополнительно:
  --version, -v       Показать версию SiteAuditor

Пример:
  site-auditor site https://example.com --max-pages 10 --save --output ./reports
"""
import json
import sys
from pathlib import Path
from typing import Any, Dict, NoReturn, Optional

import click

from site_auditor import __version__
from site_auditor.config import AuditConfig, load_config
from site_auditor.engine import Engine
from site_auditor.errors import SiteAuditorError
from site_auditor.logger import DEFAULT_FORMAT, configure, init_logging
from site_auditor.models import PageAuditResult, SiteAuditReport
from site_auditor.report.json_report import render_json, save_report

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])


def print_error(message: str) -> NoReturn:
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def _with_api_key(cfg: AuditConfig, api_key: Optional[str]) -> AuditConfig:
    if not api_key:
        return cfg
    psi = cfg.pagespeed.model_copy(update={'api_key': api_key})
    return cfg.model_copy(update={'pagespeed': psi})


def _logs_to_stderr(ctx) -> None:
    """stdout занят JSON-выводом: логи переключаются на stderr."""
    configure(stream=sys.stderr, **ctx.obj['log'])


def _dump(data: Dict[str, Any], pretty: bool) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2 if pretty else None)


def echo_summary(report: SiteAuditReport) -> None:
    """Печатает итоговую сводку аудита сайта."""
    summary = report.summary
    meta = report.metadata
    avg = summary.average_scores
    issues = summary.total_issues

    click.echo('')
    if report.cancelled:
        click.secho('=== WHOLE SITE AUDIT CANCELLED (partial report) ===', fg='yellow')
    else:
        click.secho('=== WHOLE SITE AUDIT COMPLETE ===', fg='green')
    click.echo(f'Pages Discovered: {meta.total_pages_discovered}')
    click.echo(f'Pages Audited: {meta.total_pages_audited}')
    click.echo(f'Pages Failed: {meta.total_errors}')
    if meta.total_pages_skipped:
        click.echo(f'Pages Skipped: {meta.total_pages_skipped}')
    click.echo('')
    click.echo('Average Scores:')
    click.echo(f'  Performance: {avg.performance}/100')
    click.echo(f'  Accessibility: {avg.accessibility}/100')
    click.echo(f'  SEO: {avg.seo}/100')
    click.echo('')
    click.echo('Total Issues Found:')
    click.echo(f'  Critical: {issues.critical}')
    click.echo(f'  Moderate: {issues.moderate}')
    click.echo(f'  Minor: {issues.minor}')

    for label, page in (('Best Page', summary.best_page), ('Needs Attention', summary.worst_page)):
        if page is None:
            continue
        s = page.scores
        click.echo('')
        click.echo(f'{label}: {page.url}')
        click.echo(f'  P:{s.performance} A:{s.accessibility} S:{s.seo}')

    for error in report.errors:
        click.secho(f'Failed: {error.url}: {error.error}', fg='red')


def echo_page(result: PageAuditResult) -> None:
    s = result.scores
    click.echo(f'Performance: {s.performance}')
    click.echo(f'Accessibility: {s.accessibility}')
    click.echo(f'SEO: {s.seo}')
    click.echo(f'Total Issues: {result.total_issues}')


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteAuditor, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--api-key', 'api_key',
    envvar='PAGESPEED_API_KEY',
    default=None,
    help='Ключ PageSpeed Insights API.'
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
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, api_key, log_level, log_file, log_format):
    """Группа команд SiteAuditor CLI."""
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
    ctx.obj['log'] = dict(level=log_level, log_file=log_file, log_format=log_format)
    ctx.obj['config'] = _with_api_key(cfg, api_key)


@cli.command('site', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option(
    '--max-pages', '-m', 'max_pages',
    type=click.IntRange(1, 100),
    default=None,
    help='Макс. число страниц для аудита (override max_pages)'
)
@click.option('--save', is_flag=True, help='Сохранить JSON-отчёт в каталог --output')
@click.option(
    '--output', '-o', 'output_dir',
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help='Каталог для сохранения отчёта'
)
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(dir_okay=False, allow_dash=True, path_type=Path),
    help="Сохранить JSON-отчёт в файл ('-' для stdout)"
)
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.pass_context
def site(ctx, url, max_pages, save, output_dir, json_output, pretty):
    """Аудит всего сайта начиная с URL."""
    cfg = ctx.obj['config']
    if json_output is not None and str(json_output) == '-':
        _logs_to_stderr(ctx)
    engine = Engine(cfg)
    try:
        report = engine.run_site_audit(url, max_pages)
    except SiteAuditorError as e:
        print_error(f'Ошибка: {e}')
    except Exception as e:
        print_error(f'Ошибка при аудите сайта: {e}')

    if json_output is not None and str(json_output) == '-':
        click.echo(_dump(report.to_dict(), pretty))
        return

    echo_summary(report)

    if json_output is not None:
        try:
            saved = render_json(report, json_output)
            click.echo(f'JSON report: {saved}')
        except OSError as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    if save:
        try:
            saved = save_report(report, output_dir or cfg.output_dir)
            click.echo(f'Results saved to: {saved}')
        except OSError as e:
            print_error(f'Ошибка при сохранении отчёта: {e}')


@cli.command('page', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(dir_okay=False, allow_dash=True, path_type=Path),
    help="Сохранить результат в JSON-файл ('-' для stdout)"
)
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.pass_context
def page(ctx, url, json_output, pretty):
    """Аудит одной страницы."""
    if json_output is not None and str(json_output) == '-':
        _logs_to_stderr(ctx)
    engine = Engine(ctx.obj['config'])
    try:
        result = engine.run_page_audit(url)
    except Exception as e:
        print_error(f'Ошибка при аудите страницы: {e}')

    if json_output is None:
        echo_page(result)
        return
    payload = _dump(result.to_dict(), pretty)
    if str(json_output) == '-':
        click.echo(payload)
        return
    json_output.parent.mkdir(parents=True, exist_ok=True)
    json_output.write_text(payload, encoding='utf-8')
    echo_page(result)
    click.echo(f'JSON report: {json_output}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    data = cfg.model_dump(mode='json')
    if data['pagespeed'].get('api_key'):
        data['pagespeed']['api_key'] = '***'
    click.echo(json.dumps(data, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    cli()
