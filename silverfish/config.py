# === FILE: silverfish/config.py ===
"""
Модуль для загрузки и валидации конфигурации краулера Silverfish.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, List, Tuple, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from silverfish.models import Place

#: Ключевые слова в URL, по которым краулер переходит на внутренние страницы.
DEFAULT_FOLLOW_KEYWORDS: Tuple[str, ...] = (
    "contact",
    "about",
    "location",
    "order",
    "menu",
    "info",
    "reservation",
    "shop",
    "store",
    "pickup",
    "delivery",
)

#: Платформы доставки: по ссылкам на них не переходим, но отмечаем онлайн-заказ.
DEFAULT_BLOCKED_KEYWORDS: Tuple[str, ...] = (
    "ubereats",
    "uber",
    "doordash",
    "postmates",
    "grubhub",
    "toast",
    "toasttab",
    "chownow",
    "caviar",
    "delivery",
)


class PlacesSettings(BaseModel):
    """Параметры запроса Google Places (searchNearby)."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    enabled: bool = Field(False, description="Брать сайты из Google Places вместо seeds.")
    api_key_env: str = Field("GOOGLE_MAPS_API_KEY", min_length=1, description="Переменная окружения с ключом API.")
    endpoint: str = Field(
        "https://places.googleapis.com/v1/places:searchNearby", description="URL метода searchNearby."
    )
    latitude: float = Field(34.0549, ge=-90, le=90)
    longitude: float = Field(-118.2426, ge=-180, le=180)
    radius: float = Field(500.0, gt=0, le=50000, description="Радиус поиска (метры).")
    max_results: int = Field(10, ge=1, le=20, description="Макс. число мест (лимит API — 20).")
    included_types: List[str] = Field(default_factory=lambda: ["restaurant"])


class CrawlerConfig(BaseModel):
    """Конфигурация одного запуска краулера."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    output_path: Path = Field(Path("restaurants.csv"), description="CSV-файл с результатами.")
    max_depth: int = Field(3, ge=1, description="Максимальная глубина обхода (стартовая страница = 1).")
    parallelism: int = Field(5, ge=1, description="Параллельных запросов на один сайт.")
    request_delay: float = Field(1.0, ge=0, description="Пауза между запросами к одному сайту (секунд).")
    timeout: float = Field(10.0, gt=0, description="Таймаут на один запрос (секунд).")
    retry_times: int = Field(1, ge=0, description="Число повторных попыток при 429/5xx и сетевых ошибках.")
    user_agent: str = Field("SilverfishBot/1.0", min_length=1, description="Заголовок User-Agent.")
    queue_size: int = Field(100, ge=0, description="Ёмкость очереди результатов (0 — без ограничения).")
    site_concurrency: int = Field(20, ge=1, description="Сколько сайтов обходится одновременно.")

    follow_keywords: Tuple[str, ...] = Field(DEFAULT_FOLLOW_KEYWORDS, min_length=1)
    blocked_keywords: Tuple[str, ...] = Field(DEFAULT_BLOCKED_KEYWORDS)

    seeds: List[Place] = Field(default_factory=list, description="Статический список ресторанов.")
    places: PlacesSettings = Field(default_factory=PlacesSettings)

    @field_validator("follow_keywords", "blocked_keywords", mode="after")
    def _lower_keywords(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        cleaned = tuple(k.strip().lower() for k in v)
        if any(not k for k in cleaned):
            raise ValueError("ключевые слова не могут быть пустыми")
        return cleaned


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
    Без пути берётся configs/default.yaml, а если его нет — значения по умолчанию.
    Явно указанный, но отсутствующий файл — FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.is_file():
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

    return CrawlerConfig(**data)


__all__ = [
    "CrawlerConfig",
    "PlacesSettings",
    "DEFAULT_FOLLOW_KEYWORDS",
    "DEFAULT_BLOCKED_KEYWORDS",
    "load_config",
]
