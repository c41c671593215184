# site_auditor/report/json_report.py

"""
Сохранение отчёта SiteAuditReport в JSON-файл.
"""
import json
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from site_auditor.models import SiteAuditReport


def report_filename(report: SiteAuditReport, day: Optional[date] = None) -> str:
    """Имя файла вида audit-result-example-com-2024-05-01.json (дата по UTC)."""
    host = urlparse(report.metadata.start_url).hostname or "site"
    day = day or datetime.now(timezone.utc).date()
    return f"audit-result-{host.replace('.', '-')}-{day.isoformat()}.json"


def render_json(report: SiteAuditReport, output_path: Path | str) -> Path:
    """Пишет report.to_dict() в output_path (UTF-8, отступ 2), создаёт недостающие каталоги."""
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open('w', encoding='utf-8') as f:
        json.dump(report.to_dict(), f, ensure_ascii=False, indent=2)

    return output


def save_report(report: SiteAuditReport, output_dir: Path | str) -> Path:
    """Сохраняет отчёт в output_dir под стандартным именем и возвращает путь."""
    return render_json(report, Path(output_dir) / report_filename(report))
