# === FILE: site_docgen/config.py ===
"""
Модуль для загрузки и валидации конфигурации краулера SiteDocGen.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

__all__ = [
    "CrawlerConfig",
    "DEFAULT_EXCLUDED_EXTENSIONS",
    "DEFAULT_EXCLUDED_PATHS",
    "load_config",
]

DEFAULT_EXCLUDED_EXTENSIONS: Tuple[str, ...] = (
    ".jpg", ".jpeg", ".png", ".gif", ".svg", ".webp",
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".zip", ".rar", ".tar", ".gz", ".7z",
    ".mp3", ".mp4", ".avi", ".mov", ".webm",
    ".css", ".js", ".json", ".xml", ".rss", ".atom",
)

DEFAULT_EXCLUDED_PATHS: Tuple[str, ...] = (
    "/wp-admin",
    "/wp-login",
    "/admin",
    "/login",
    "/signin",
    "/cart",
    "/checkout",
)


class CrawlerConfig(BaseModel):
    """Конфигурация краулера и генератора документации."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    user_agent: str = Field(
        "Mozilla/5.0 (compatible; SiteDocGen/1.0)", min_length=1, description="Заголовок User-Agent."
    )
    page_timeout: float = Field(15.0, gt=0, description="Таймаут загрузки страницы для документации (секунд).")
    link_timeout: float = Field(10.0, gt=0, description="Таймаут загрузки страницы для извлечения ссылок.")
    head_timeout: float = Field(5.0, gt=0, description="Таймаут HEAD-запроса за Last-Modified.")
    request_delay: float = Field(0.5, ge=0, description="Фиксированная пауза после каждой страницы (секунд).")
    freshness_days: int = Field(30, ge=0, description="Сколько дней завершённый обход считается свежим.")
    max_pages: Optional[int] = Field(None, ge=1, description="Жесткий лимит по числу страниц (None: без лимита).")
    excluded_extensions: Tuple[str, ...] = Field(
        DEFAULT_EXCLUDED_EXTENSIONS, description="Расширения статических файлов, которые не обходятся."
    )
    excluded_paths: Tuple[str, ...] = Field(
        DEFAULT_EXCLUDED_PATHS, description="Подстроки служебных путей (админка, авторизация, корзина)."
    )

    @field_validator("excluded_extensions", mode="after")
    @classmethod
    def _normalize_extensions(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in v)

    @field_validator("excluded_paths", mode="after")
    @classmethod
    def _normalize_paths(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(p.lower() for p in v if p)


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


def load_config(path: Union[str, Path, None] = None) -> CrawlerConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект CrawlerConfig.
    Без пути берёт configs/default.yaml, а если его нет, значения по умолчанию.
    При отсутствии явно указанного файла бросает FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return CrawlerConfig()
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
