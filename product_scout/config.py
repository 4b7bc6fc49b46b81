"""
Модуль для загрузки и валидации конфигурации краулера ProductScout.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    ValidationError,
    field_validator,
)

DATABASE_URL_ENV = "PRODUCT_SCOUT_DATABASE_URL"

_DEFAULT_BROWSER_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


def _default_database_url() -> str:
    return os.environ.get(DATABASE_URL_ENV, "sqlite:///product_scout.db")


@dataclass(frozen=True, slots=True)
class CrawlTarget:
    """Неизменяемые параметры одного прохода по домену."""

    base_url: str
    max_depth: int
    max_pages: int


class CrawlerConfig(BaseModel):
    """Конфигурация запуска краулера."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    target_domains: List[HttpUrl] = Field(..., min_length=1, description="Стартовые URL доменов.")
    product_patterns: List[str] = Field(
        default_factory=lambda: [r"/(product|item|p)/"],
        description="Регулярные выражения для URL карточек товара.",
    )
    max_depth: int = Field(3, ge=0, description="Максимальная глубина обхода ссылок.")
    max_pages: int = Field(300, ge=1, description="Лимит загруженных страниц на домен.")
    batch_size: int = Field(20, ge=1, description="Число URL в одном раунде.")
    http_concurrency: int = Field(10, ge=1, description="Параллельные HTTP-запросы.")
    render_concurrency: int = Field(5, ge=1, description="Параллельные проверки в браузере.")
    fetch_timeout: float = Field(8.0, gt=0, description="Таймаут HTTP-запроса (секунд).")
    render_timeout: float = Field(10.0, gt=0, description="Таймаут рендеринга страницы (секунд).")
    max_content_bytes: int = Field(1024 * 1024, ge=1, description="Максимальный размер ответа.")
    user_agent: str = Field(
        "Mozilla/5.0 (compatible; ProductScout/1.0)", min_length=1, description="Заголовок User-Agent."
    )
    browser_user_agent: str = Field(_DEFAULT_BROWSER_UA, min_length=1)
    render_enabled: bool = Field(True, description="Проверять неоднозначные URL в браузере.")
    headless: bool = True
    blocked_resource_types: List[str] = Field(
        default_factory=lambda: ["image", "font", "stylesheet", "media"]
    )
    blocked_url_patterns: List[str] = Field(
        default_factory=lambda: [
            r"/analytics/",
            r"/tracking/",
            r"google-analytics\.com",
            r"googletagmanager\.com",
            r"doubleclick\.net",
            r"facebook\.net",
            r"hotjar\.",
        ]
    )
    flush_threshold: int = Field(50, ge=1, description="Порог сброса найденных URL в БД.")
    confidence_threshold: int = Field(7, ge=1, description="Порог оценки карточки товара.")
    database_url: str = Field(default_factory=_default_database_url, min_length=1)
    create_schema: bool = True

    @field_validator("product_patterns", "blocked_url_patterns")
    @classmethod
    def _check_regexes(cls, v: List[str]) -> List[str]:
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as exc:
                raise ValueError(f"Неправильное регулярное выражение {pattern!r}: {exc}") from exc
        return v

    def target_for(self, seed_url: str) -> CrawlTarget:
        return CrawlTarget(base_url=str(seed_url), max_depth=self.max_depth, max_pages=self.max_pages)


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


def load_config(path: Union[str, Path, None]) -> CrawlerConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект CrawlerConfig.
    При отсутствии файла конфига бросает FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
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

    try:
        return CrawlerConfig(**data)
    except ValidationError:
        raise
