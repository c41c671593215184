# === FILE: site_auditor/config.py ===
"""
Модуль для загрузки и валидации конфигурации SiteAuditor.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = ["PageSpeedConfig", "AuditConfig", "load_config", "DEFAULT_USER_AGENT"]

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; WebsiteAuditor/1.0)"
PAGESPEED_API = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"


class PageSpeedConfig(BaseModel):
    """Настройки обращения к PageSpeed Insights."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    api_key: Optional[str] = Field(None, description="Ключ Google API (необязателен).")
    strategy: Literal["mobile", "desktop"] = Field("mobile", description="Профиль Lighthouse.")
    endpoint: str = Field(PAGESPEED_API, min_length=1, description="URL PageSpeed Insights API.")
    map_lines: bool = Field(
        True, description="Загружать HTML страницы для определения строк проблемных элементов."
    )


class AuditConfig(BaseModel):
    """Конфигурация одного запуска аудита."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_pages: int = Field(50, ge=1, le=100, description="Жесткий лимит по числу страниц.")
    crawl_delay: float = Field(0.5, ge=0, description="Пауза между загрузками страниц при обходе (секунд).")
    audit_delay: float = Field(1.0, ge=0, description="Пауза между аудитами страниц (секунд).")
    retry_backoff: float = Field(2.0, ge=0, description="Пауза перед повторным аудитом (секунд).")
    fetch_timeout: float = Field(10.0, gt=0, description="Таймаут загрузки страницы (секунд).")
    audit_timeout: float = Field(120.0, gt=0, description="Таймаут одного аудита страницы (секунд).")
    max_redirects: int = Field(5, ge=0, description="Максимум редиректов при загрузке.")
    user_agent: str = Field(DEFAULT_USER_AGENT, min_length=1, description="Заголовок User-Agent.")
    drop_unreachable_seed: bool = Field(
        True, description="Недоступный стартовый URL даёт пустой обход вместо [seed]."
    )
    cache_size: int = Field(50, ge=1, description="Сколько отчётов держать в кеше.")
    output_dir: Path = Field(Path("./output"), description="Каталог для сохранённых отчётов.")

    pagespeed: PageSpeedConfig = Field(default_factory=PageSpeedConfig)

    @field_validator("user_agent", mode="before")
    def _strip_user_agent(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None] = None) -> AuditConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект AuditConfig.
    Без пути берёт configs/default.yaml, а если его нет, то значения по умолчанию.
    Явно указанный, но отсутствующий файл даёт FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return AuditConfig()
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    # ValidationError пробрасывается вызывающему как есть
    return AuditConfig(**data)
