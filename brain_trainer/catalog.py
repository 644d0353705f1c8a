"""Catalog of third-party brain-training games.

The vendor's game service is an external collaborator: the app only needs to
list games (``GameCatalog``) and hand one to a player (``GameLauncher``). This
module holds those interfaces, the built-in demonstration set served when no
vendor data is available, and the filter/pagination helpers the catalog screen
uses.
"""

from __future__ import annotations

import json
import logging
import math
import os
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)

CATALOG_PATH_ENV = "BRAIN_TRAINER_CATALOG_PATH"
DEFAULT_LOCALE = "en"
GAMES_PER_PAGE = 5


class GameCategory(StrEnum):
    COGNITIVE = "COGNITIVE"
    MATH = "MATH"
    LANG = "LANG"


class Platform(StrEnum):
    IPHONE = "iphone"
    IPAD = "ipad"
    ANDROID = "android"


class LaunchStatus(StrEnum):
    COMPLETED = "completed"
    ABORTED = "aborted"
    LOGIN_ERROR = "loginError"


@dataclass(frozen=True, slots=True)
class CategoryInfo:
    category: GameCategory
    name: str
    description: str


CATEGORY_INFO: dict[GameCategory, CategoryInfo] = {
    GameCategory.COGNITIVE: CategoryInfo(
        GameCategory.COGNITIVE,
        "Cognitive Games",
        "Train memory, attention, perception and other cognitive functions",
    ),
    GameCategory.MATH: CategoryInfo(
        GameCategory.MATH,
        "Math Games",
        "Improve numerical and calculation skills",
    ),
    GameCategory.LANG: CategoryInfo(
        GameCategory.LANG,
        "Language Games",
        "Strengthen verbal and communication skills",
    ),
}


@dataclass(frozen=True, slots=True)
class CatalogGame:
    key: str
    titles: dict[str, str]
    descriptions: dict[str, str] = field(default_factory=dict)
    skills: tuple[str, ...] = ()
    platforms: frozenset[Platform] = frozenset()
    category: GameCategory = GameCategory.COGNITIVE

    def title(self, locale: str = DEFAULT_LOCALE) -> str:
        return _localized(self.titles, locale) or self.key

    def description(self, locale: str = DEFAULT_LOCALE) -> str:
        return _localized(self.descriptions, locale) or "Cognitive training game"

    def skill_names(self) -> list[str]:
        return [" ".join(word.capitalize() for word in skill.lower().split("_")) for skill in self.skills]

    def platform_labels(self) -> list[str]:
        labels = {Platform.IPHONE: "iPhone", Platform.IPAD: "iPad", Platform.ANDROID: "Android"}
        return [labels[p] for p in Platform if p in self.platforms]

    @classmethod
    def from_dict(cls, data: object) -> "CatalogGame | None":
        """Parse one vendor-shaped game record; None if it has no usable key."""

        if not isinstance(data, dict):
            return None
        key = str(data.get("key", "")).strip()
        if key == "":
            return None

        assets = data.get("assets")
        assets = assets if isinstance(assets, dict) else {}
        titles = _str_dict(assets.get("titles"))
        descriptions = _str_dict(assets.get("descriptions"))

        raw_skills = data.get("skills")
        skills = tuple(str(s) for s in raw_skills) if isinstance(raw_skills, list) else ()

        platforms = frozenset(p for p in Platform if _truthy_flag(data.get(p.value)))

        try:
            category = GameCategory(str(data.get("category", GameCategory.COGNITIVE.value)).upper())
        except ValueError:
            category = GameCategory.COGNITIVE

        return cls(
            key=key,
            titles=titles,
            descriptions=descriptions,
            skills=skills,
            platforms=platforms,
            category=category,
        )


@dataclass(frozen=True, slots=True)
class GameCompletion:
    status: LaunchStatus
    key: str
    score: int | None = None


@dataclass(frozen=True, slots=True)
class CatalogPage:
    items: list[CatalogGame]
    page: int
    page_count: int
    total: int

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.page_count


class GameCatalog(Protocol):
    def list_games(self, category: GameCategory | None = None) -> list[CatalogGame]: ...


class GameLauncher(Protocol):
    def launch_game(self, key: str, region: str, on_complete: Callable[[GameCompletion], None]) -> None:
        """Start ``key`` inside ``region``; report the outcome through ``on_complete`` later."""
        ...


def _game(
    key: str,
    title_en: str,
    title_es: str,
    desc_en: str,
    desc_es: str,
    skills: tuple[str, ...],
    platforms: Iterable[Platform],
    category: GameCategory,
) -> CatalogGame:
    return CatalogGame(
        key=key,
        titles={"en": title_en, "es": title_es},
        descriptions={"en": desc_en, "es": desc_es},
        skills=skills,
        platforms=frozenset(platforms),
        category=category,
    )


_ALL = (Platform.IPHONE, Platform.IPAD, Platform.ANDROID)

FALLBACK_GAMES: tuple[CatalogGame, ...] = (
    _game(
        "BEE_BALLOON",
        "Bee Balloon",
        "Abeja Globo",
        "The objective of this game is to explode all the balloons that appear on the screen.",
        "El objetivo de este juego es explotar todos los globos que aparecen en la pantalla.",
        ("EYE_HAND_COORDINATION", "SHIFTING", "RESPONSE_TIME"),
        (Platform.IPHONE, Platform.IPAD),
        GameCategory.COGNITIVE,
    ),
    _game(
        "MAHJONG",
        "Mahjong",
        "Mahjong",
        "Match pairs of tiles to clear the board and train your visual memory.",
        "Empareja pares de fichas para limpiar el tablero y entrena tu memoria visual.",
        ("VISUAL_MEMORY", "PLANNING", "VISUAL_PERCEPTION"),
        _ALL,
        GameCategory.COGNITIVE,
    ),
    _game(
        "DIGITS",
        "Digits",
        "Dígitos",
        "Order numbers mentally to eliminate them in sequence and train working memory.",
        "Ordena números mentalmente para eliminarlos en secuencia y entrena la memoria de trabajo.",
        ("WORKING_MEMORY", "PROCESSING_SPEED", "VISUAL_SCANNING"),
        _ALL,
        GameCategory.COGNITIVE,
    ),
    _game(
        "WORDS_BIRDS",
        "Words Birds",
        "Palabras Pájaros",
        "Form words by rearranging letters to complete objectives and train language skills.",
        "Forma palabras reorganizando letras para completar objetivos y entrena habilidades lingüísticas.",
        ("UPDATING", "NAMING", "VISUAL_SCANNING"),
        (Platform.IPHONE, Platform.ANDROID),
        GameCategory.LANG,
    ),
    _game(
        "MATH_TRAINER",
        "Math Trainer",
        "Entrenador Matemático",
        "Solve mathematical problems to improve numerical processing and calculation skills.",
        "Resuelve problemas matemáticos para mejorar el procesamiento numérico y habilidades de cálculo.",
        ("NUMERICAL_PROCESSING", "WORKING_MEMORY", "PROCESSING_SPEED"),
        _ALL,
        GameCategory.MATH,
    ),
    _game(
        "VISUAL_MEMORY",
        "Visual Memory",
        "Memoria Visual",
        "Memorize visual patterns and sequences of shapes and colors.",
        "Memoriza patrones visuales y secuencias de formas y colores.",
        ("VISUAL_MEMORY", "SHORT_TERM_MEMORY", "RECOGNITION"),
        _ALL,
        GameCategory.COGNITIVE,
    ),
    _game(
        "ATTENTION_FOCUS",
        "Attention Focus",
        "Enfoque Atencional",
        "Focus your attention on specific stimuli while ignoring distractors.",
        "Enfoca tu atención en estímulos específicos ignorando distractores.",
        ("FOCUS_ATTENTION", "INHIBITION", "CONCENTRATION"),
        (Platform.IPHONE, Platform.IPAD),
        GameCategory.COGNITIVE,
    ),
    _game(
        "COORDINATION_TRAINER",
        "Coordination Trainer",
        "Entrenador de Coordinación",
        "Develop synchronization between what you see and your movements.",
        "Desarrolla la sincronización entre lo que ves y tus movimientos.",
        ("EYE_HAND_COORDINATION", "MOTOR_CONTROL", "RESPONSE_TIME"),
        _ALL,
        GameCategory.COGNITIVE,
    ),
)


class FallbackCatalog:
    """Built-in demonstration games, used when no vendor data can be loaded."""

    def __init__(self, games: Sequence[CatalogGame] = FALLBACK_GAMES) -> None:
        self._games = tuple(games)

    def list_games(self, category: GameCategory | None = None) -> list[CatalogGame]:
        return filter_by_category(self._games, category)


class JsonCatalog:
    """Catalog read from a vendor-shaped JSON file (a list of game records).

    A missing, unreadable or empty file falls back to the demonstration set;
    this never raises for I/O or parse problems.
    """

    def __init__(self, path: Path, *, fallback: GameCatalog | None = None) -> None:
        self._path = path
        self._fallback = fallback or FallbackCatalog()
        self._games: list[CatalogGame] | None = None
        self._using_fallback = False

    @classmethod
    def default_path(cls) -> Path | None:
        explicit = os.environ.get(CATALOG_PATH_ENV)
        if explicit:
            return Path(explicit).expanduser()
        return None

    @property
    def using_fallback(self) -> bool:
        self._ensure_loaded()
        return self._using_fallback

    def list_games(self, category: GameCategory | None = None) -> list[CatalogGame]:
        games = self._ensure_loaded()
        if games is None:
            return self._fallback.list_games(category)
        return filter_by_category(games, category)

    def _ensure_loaded(self) -> list[CatalogGame] | None:
        if self._games is None and not self._using_fallback:
            self._games = self._load()
            self._using_fallback = self._games is None
        return self._games

    def _load(self) -> list[CatalogGame] | None:
        try:
            payload: Any = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("catalog %s unavailable (%s); using demonstration games", self._path, exc)
            return None

        # Accept both a bare list and the {"games": [...]} envelope.
        if isinstance(payload, dict):
            payload = payload.get("games")
        if not isinstance(payload, list):
            logger.warning("catalog %s is not a list of games; using demonstration games", self._path)
            return None

        games = [g for g in (CatalogGame.from_dict(item) for item in payload) if g is not None]
        if not games:
            logger.warning("catalog %s has no usable games; using demonstration games", self._path)
            return None
        logger.info("loaded %d games from %s", len(games), self._path)
        return games


def default_catalog() -> GameCatalog:
    path = JsonCatalog.default_path()
    if path is None:
        return FallbackCatalog()
    return JsonCatalog(path)


def filter_by_category(games: Iterable[CatalogGame], category: GameCategory | None) -> list[CatalogGame]:
    if category is None:
        return list(games)
    return [g for g in games if g.category is category]


def group_by_category(games: Iterable[CatalogGame]) -> dict[GameCategory, list[CatalogGame]]:
    grouped: dict[GameCategory, list[CatalogGame]] = {c: [] for c in GameCategory}
    for game in games:
        grouped[game.category].append(game)
    return grouped


def paginate(items: Sequence[CatalogGame], *, page: int, page_size: int = GAMES_PER_PAGE) -> CatalogPage:
    """Slice ``items`` into 1-based pages; out-of-range pages are clamped."""

    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    total = len(items)
    page_count = max(1, math.ceil(total / page_size))
    page = min(max(1, int(page)), page_count)
    start = (page - 1) * page_size
    return CatalogPage(items=list(items[start : start + page_size]), page=page, page_count=page_count, total=total)


def _localized(texts: dict[str, str], locale: str) -> str:
    # Requested locale, then English, then Spanish, then whatever the record has.
    for code in (locale, DEFAULT_LOCALE, "es"):
        if texts.get(code):
            return texts[code]
    return next((text for text in texts.values() if text), "")


def _str_dict(value: object) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k): str(v) for k, v in value.items() if isinstance(v, str)}


def _truthy_flag(value: object) -> bool:
    # Vendor records use 1/0 for platform availability.
    try:
        return int(value) != 0  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return bool(value)
