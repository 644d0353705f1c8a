"""Pygame UI shell for Brain Trainer.

- Symbol Match (memorize a totem, find the matching stone)
- Game Catalog (browse third-party brain-training games by category)

Deterministic timing/scoring/RNG/state lives in brain_trainer/* (core modules).
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import pygame

from .catalog import (
    CATEGORY_INFO,
    CatalogGame,
    CatalogPage,
    GameCatalog,
    GameCategory,
    GameCompletion,
    GameLauncher,
    LaunchStatus,
    default_catalog,
    group_by_category,
    paginate,
)
from .clock import RealClock
from .cognitive_core import new_seed
from .results import format_summary, session_summary_from_game
from .symbol_match import (
    Outcome,
    Phase,
    Symbol,
    SymbolMatchGame,
    SymbolMatchSnapshot,
    build_symbol_match_game,
)

logger = logging.getLogger(__name__)

WINDOW_SIZE = (960, 540)
TARGET_FPS = 60
PLAYER_REGION = "game-player"

BG = (3, 9, 78)
PANEL_BG = (8, 18, 104)
HEADER_BG = (18, 30, 118)
BORDER = (226, 236, 255)
TEXT_MAIN = (238, 245, 255)
TEXT_MUTED = (186, 200, 224)
ACTIVE_BG = (244, 248, 255)
ACTIVE_TEXT = (14, 26, 74)
GOOD = (74, 222, 128)
BAD = (248, 113, 113)
TIMER = (251, 146, 60)


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


@dataclass(frozen=True, slots=True)
class MenuItem:
    label: str
    action: Callable[[], None]


class App:
    def __init__(self, surface: pygame.Surface, font: pygame.font.Font) -> None:
        self._surface = surface
        self._font = font
        self._screens: list[Screen] = []
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    @property
    def font(self) -> pygame.font.Font:
        return self._font

    @property
    def top(self) -> Screen | None:
        return self._screens[-1] if self._screens else None

    def push(self, screen: Screen) -> None:
        self._screens.append(screen)

    def pop(self) -> None:
        # Never pop the last/root screen; root handles its own quit/back behavior.
        if len(self._screens) > 1:
            self._screens.pop()

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
            return
        if not self._screens:
            return
        self._screens[-1].handle_event(event)

    def render(self) -> None:
        if not self._screens:
            return
        self._screens[-1].render(self._surface)


def _draw_frame(surface: pygame.Surface, title: str, tag: str, fonts: tuple[pygame.font.Font, pygame.font.Font]) -> pygame.Rect:
    """Paint the shared panel + header. Returns the content rect below the header."""

    title_font, hint_font = fonts
    w, h = surface.get_size()
    surface.fill(BG)

    margin = max(10, min(26, w // 34))
    frame = pygame.Rect(margin, margin, max(260, w - margin * 2), max(220, h - margin * 2))
    pygame.draw.rect(surface, PANEL_BG, frame)
    pygame.draw.rect(surface, BORDER, frame, 2)

    header = pygame.Rect(frame.x + 2, frame.y + 2, frame.w - 4, max(34, min(52, h // 8)))
    pygame.draw.rect(surface, HEADER_BG, header)
    pygame.draw.line(surface, BORDER, (header.x, header.bottom), (header.right, header.bottom), 1)

    tag_txt = hint_font.render(tag, True, TEXT_MUTED)
    surface.blit(tag_txt, (header.x + 12, header.y + (header.h - tag_txt.get_height()) // 2))
    title_txt = title_font.render(title, True, TEXT_MAIN)
    surface.blit(title_txt, title_txt.get_rect(center=(frame.centerx, header.centery)))

    return pygame.Rect(frame.x + 2, header.bottom + 1, frame.w - 4, frame.bottom - header.bottom - 3)


def _fit_label(font: pygame.font.Font, label: str, max_width: int) -> str:
    if max_width <= 0:
        return ""
    if font.size(label)[0] <= max_width:
        return label
    clipped = label
    while clipped and font.size(f"{clipped}...")[0] > max_width:
        clipped = clipped[:-1]
    return f"{clipped}..." if clipped else "..."


def _blit_lines(
    surface: pygame.Surface,
    font: pygame.font.Font,
    lines: list[str],
    *,
    center_x: int,
    top: int,
    color: tuple[int, int, int] = TEXT_MAIN,
    spacing: int = 6,
) -> int:
    y = top
    for line in lines:
        if line:
            txt = font.render(line, True, color)
            surface.blit(txt, txt.get_rect(midtop=(center_x, y)))
        y += font.get_linesize() + spacing
    return y


class MenuScreen:
    def __init__(self, app: App, title: str, items: list[MenuItem], *, is_root: bool = False) -> None:
        self._app = app
        self._title = title
        self._items = items
        self._selected = 0
        self._is_root = is_root
        self._title_font = pygame.font.Font(None, 42)
        self._item_font = pygame.font.Font(None, 32)
        self._hint_font = pygame.font.Font(None, 22)

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        if event.key in (pygame.K_UP, pygame.K_w):
            self._move(-1)
        elif event.key in (pygame.K_DOWN, pygame.K_s):
            self._move(1)
        elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
            self._activate()
        elif event.key in (pygame.K_ESCAPE, pygame.K_BACKSPACE):
            self._back()

    def _move(self, delta: int) -> None:
        if not self._items:
            return
        self._selected = (self._selected + delta) % len(self._items)

    def _activate(self) -> None:
        if not self._items:
            return
        self._items[self._selected].action()

    def _back(self) -> None:
        if self._is_root:
            self._app.quit()
        else:
            self._app.pop()

    def render(self, surface: pygame.Surface) -> None:
        content = _draw_frame(surface, self._title, "MENU", (self._title_font, self._hint_font))

        row_h = 44
        gap = 10
        total_h = row_h * len(self._items) + gap * max(0, len(self._items) - 1)
        y = content.y + max(16, (content.h - total_h) // 2)
        for idx, item in enumerate(self._items):
            row = pygame.Rect(content.x + 60, y, content.w - 120, row_h)
            selected = idx == self._selected
            pygame.draw.rect(surface, ACTIVE_BG if selected else (9, 20, 106), row)
            pygame.draw.rect(surface, (120, 142, 196) if selected else (62, 84, 152), row, 2 if selected else 1)
            label = _fit_label(self._item_font, item.label, row.w - 20)
            text = self._item_font.render(label, True, ACTIVE_TEXT if selected else TEXT_MAIN)
            surface.blit(text, (row.x + 10, row.y + (row.h - text.get_height()) // 2))
            y += row_h + gap

        foot = self._hint_font.render("Enter/Space: Select  |  Esc/Backspace: Back", True, TEXT_MUTED)
        surface.blit(foot, foot.get_rect(midbottom=(content.centerx, content.bottom - 10)))


# Shape, colour and fill per glyph.
_SYMBOL_STYLE: dict[Symbol, tuple[str, tuple[int, int, int], bool]] = {
    Symbol.RED_TRIANGLE_UP: ("triangle_up", (239, 68, 68), True),
    Symbol.RED_TRIANGLE_DOWN: ("triangle_down", (239, 68, 68), True),
    Symbol.BLUE_DIAMOND: ("diamond", (59, 130, 246), True),
    Symbol.ORANGE_DIAMOND: ("diamond", (249, 115, 22), True),
    Symbol.STAR: ("star", (250, 204, 21), True),
    Symbol.GLOWING_STAR: ("glowing_star", (253, 224, 71), True),
    Symbol.DOTTED_DIAMOND: ("dotted_diamond", (56, 189, 248), True),
    Symbol.SMALL_ORANGE_DIAMOND: ("small_diamond", (249, 115, 22), True),
    Symbol.SMALL_BLUE_DIAMOND: ("small_diamond", (59, 130, 246), True),
    Symbol.SOLID_DIAMOND: ("diamond", (226, 232, 240), True),
    Symbol.HOLLOW_DIAMOND: ("diamond", (226, 232, 240), False),
    Symbol.SOLID_CIRCLE: ("circle", (226, 232, 240), True),
    Symbol.HOLLOW_CIRCLE: ("circle", (226, 232, 240), False),
    Symbol.SOLID_SQUARE: ("square", (226, 232, 240), True),
    Symbol.HOLLOW_SQUARE: ("square", (226, 232, 240), False),
    Symbol.SOLID_TRIANGLE_UP: ("triangle_up", (226, 232, 240), True),
    Symbol.SOLID_TRIANGLE_DOWN: ("triangle_down", (226, 232, 240), True),
    Symbol.SOLID_TRIANGLE_LEFT: ("triangle_left", (226, 232, 240), True),
    Symbol.SOLID_TRIANGLE_RIGHT: ("triangle_right", (226, 232, 240), True),
    Symbol.BLUE_CIRCLE: ("circle", (59, 130, 246), True),
    Symbol.YELLOW_CIRCLE: ("circle", (250, 204, 21), True),
    Symbol.ORANGE_CIRCLE: ("circle", (249, 115, 22), True),
    Symbol.RED_CIRCLE: ("circle", (239, 68, 68), True),
    Symbol.GREEN_CIRCLE: ("circle", (34, 197, 94), True),
}


def _star_points(cx: float, cy: float, r_outer: float, r_inner: float) -> list[tuple[float, float]]:
    pts: list[tuple[float, float]] = []
    for i in range(10):
        r = r_outer if i % 2 == 0 else r_inner
        a = -math.pi / 2 + i * math.pi / 5
        pts.append((cx + r * math.cos(a), cy + r * math.sin(a)))
    return pts


def draw_symbol(surface: pygame.Surface, symbol: Symbol, rect: pygame.Rect) -> None:
    shape, color, filled = _SYMBOL_STYLE[symbol]
    width = 0 if filled else 3
    cx, cy = rect.center
    r = min(rect.w, rect.h) * 0.42

    if shape == "triangle_up":
        pts = [(cx, cy - r), (cx + r, cy + r * 0.8), (cx - r, cy + r * 0.8)]
        pygame.draw.polygon(surface, color, pts, width)
    elif shape == "triangle_down":
        pts = [(cx - r, cy - r * 0.8), (cx + r, cy - r * 0.8), (cx, cy + r)]
        pygame.draw.polygon(surface, color, pts, width)
    elif shape == "triangle_left":
        pts = [(cx - r, cy), (cx + r * 0.8, cy - r), (cx + r * 0.8, cy + r)]
        pygame.draw.polygon(surface, color, pts, width)
    elif shape == "triangle_right":
        pts = [(cx + r, cy), (cx - r * 0.8, cy - r), (cx - r * 0.8, cy + r)]
        pygame.draw.polygon(surface, color, pts, width)
    elif shape in ("diamond", "small_diamond", "dotted_diamond"):
        rr = r * 0.6 if shape == "small_diamond" else r
        pts = [(cx, cy - rr), (cx + rr * 0.75, cy), (cx, cy + rr), (cx - rr * 0.75, cy)]
        pygame.draw.polygon(surface, color, pts, width)
        if shape == "dotted_diamond":
            pygame.draw.circle(surface, (255, 255, 255), (int(cx), int(cy)), max(2, int(r * 0.18)))
    elif shape in ("star", "glowing_star"):
        if shape == "glowing_star":
            pygame.draw.circle(surface, (254, 240, 138), (int(cx), int(cy)), int(r), 2)
            r *= 0.8
        pygame.draw.polygon(surface, color, _star_points(cx, cy, r, r * 0.45), width)
    elif shape == "circle":
        pygame.draw.circle(surface, color, (int(cx), int(cy)), int(r * 0.85), width)
    else:
        side = int(r * 1.5)
        pygame.draw.rect(surface, color, pygame.Rect(int(cx - side / 2), int(cy - side / 2), side, side), width)


class SymbolMatchScreen:
    def __init__(self, app: App, *, game_factory: Callable[[Callable[[], None]], SymbolMatchGame]) -> None:
        self._app = app
        self._game = game_factory(self._on_game_exit)
        self._cursor = 0
        self._stone_hitboxes: list[pygame.Rect] = []

        self._title_font = pygame.font.Font(None, 42)
        self._stat_font = pygame.font.Font(None, 34)
        self._small_font = pygame.font.Font(None, 24)
        self._tiny_font = pygame.font.Font(None, 20)
        self._big_font = pygame.font.Font(None, 56)

    @property
    def game(self) -> SymbolMatchGame:
        return self._game

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            for idx, box in enumerate(self._stone_hitboxes):
                if box.collidepoint(event.pos):
                    self._game.select(idx)
                    return
            return
        if event.type != pygame.KEYDOWN:
            return

        # Exit is honored in every phase, mid-countdown included.
        if event.key in (pygame.K_ESCAPE, pygame.K_BACKSPACE):
            self._game.exit()
            return

        phase = self._game.phase
        if phase is Phase.PREPARATION:
            if event.key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
                self._cursor = 0
                self._game.begin_round()
        elif phase is Phase.SELECTION:
            choice = self._choice_from_key(event.key)
            if choice is not None:
                self._game.select(choice - 1)
            elif event.key in (pygame.K_LEFT, pygame.K_a, pygame.K_UP, pygame.K_w):
                self._move_cursor(-1)
            elif event.key in (pygame.K_RIGHT, pygame.K_d, pygame.K_DOWN, pygame.K_s):
                self._move_cursor(1)
            elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
                self._game.select(self._cursor)
        elif phase is Phase.RESULT:
            if event.key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
                self._game.continue_game()

    def render(self, surface: pygame.Surface) -> None:
        # Let due timers fire before drawing this frame.
        self._game.update()
        snap = self._game.snapshot()

        content = _draw_frame(surface, snap.title, f"LEVEL {snap.stats.level}", (self._title_font, self._tiny_font))
        stats_bottom = self._render_stats(surface, content, snap)
        body = pygame.Rect(content.x + 20, stats_bottom + 10, content.w - 40, content.bottom - stats_bottom - 50)

        self._stone_hitboxes = []
        if snap.phase is Phase.MEMORIZATION and snap.totem is not None:
            self._render_totem(surface, body, snap)
        elif snap.phase is Phase.SELECTION and snap.stones is not None:
            self._render_stones(surface, body, snap)
        elif snap.phase is Phase.RESULT:
            self._render_result(surface, body, snap)
        else:
            _blit_lines(surface, self._small_font, snap.prompt.split("\n"), center_x=body.centerx, top=body.y + 40)

        foot = self._tiny_font.render(self._footer_hint(snap.phase), True, TEXT_MUTED)
        surface.blit(foot, foot.get_rect(midbottom=(content.centerx, content.bottom - 10)))

    def _render_stats(self, surface: pygame.Surface, content: pygame.Rect, snap: SymbolMatchSnapshot) -> int:
        s = snap.stats
        cells = [
            (f"{s.level}", "Level", (250, 204, 21)),
            (f"{s.score}", "Points", GOOD),
            (f"{s.correct_count}", "Correct", (96, 165, 250)),
            (f"{s.incorrect_count}", "Errors", BAD),
        ]
        x = content.x + 30
        y = content.y + 10
        for value, label, color in cells:
            v = self._stat_font.render(value, True, color)
            lb = self._tiny_font.render(label, True, TEXT_MUTED)
            surface.blit(v, (x, y))
            surface.blit(lb, (x, y + v.get_height()))
            x += max(v.get_width(), lb.get_width()) + 36

        if snap.seconds_left is not None:
            verb = "Memorize" if snap.phase is Phase.MEMORIZATION else "Select"
            t = self._stat_font.render(f"{snap.seconds_left}s", True, TIMER)
            lb = self._tiny_font.render(verb, True, TEXT_MUTED)
            surface.blit(t, (content.right - 110, y))
            surface.blit(lb, (content.right - 110, y + t.get_height()))
        return y + 50

    def _render_totem(self, surface: pygame.Surface, body: pygame.Rect, snap: SymbolMatchSnapshot) -> None:
        assert snap.totem is not None
        title = self._small_font.render(snap.prompt, True, TEXT_MAIN)
        surface.blit(title, title.get_rect(midtop=(body.centerx, body.y)))

        cell = max(40, min(90, (body.h - 40) // len(snap.totem)))
        totem_rect = pygame.Rect(0, 0, cell + 40, cell * len(snap.totem) + 30)
        totem_rect.midtop = (body.centerx, body.y + 30)
        pygame.draw.rect(surface, (161, 98, 7), totem_rect, border_radius=14)
        pygame.draw.rect(surface, (250, 204, 21), totem_rect, 3, border_radius=14)
        for idx, symbol in enumerate(snap.totem):
            slot = pygame.Rect(totem_rect.x + 20, totem_rect.y + 15 + idx * cell, cell, cell)
            pygame.draw.rect(surface, (202, 138, 4), slot.inflate(-6, -6), border_radius=8)
            draw_symbol(surface, symbol, slot.inflate(-14, -14))

    def _render_stones(self, surface: pygame.Surface, body: pygame.Rect, snap: SymbolMatchSnapshot) -> None:
        assert snap.stones is not None
        title = self._small_font.render(snap.prompt, True, TEXT_MAIN)
        surface.blit(title, title.get_rect(midtop=(body.centerx, body.y)))

        n = len(snap.stones)
        cols = 3 if 4 < n <= 6 else min(4, n)
        rows = math.ceil(n / cols)
        gap = 14
        grid_top = body.y + 30
        stone_h = max(60, (body.bottom - grid_top - gap * (rows - 1)) // rows)
        stone_w = min(stone_h // 2 + 30, (body.w - gap * (cols - 1)) // cols)
        sym = max(16, min(stone_w - 16, (stone_h - 20) // 3))

        grid_w = cols * stone_w + (cols - 1) * gap
        x0 = body.centerx - grid_w // 2
        resolution = snap.resolution
        for idx, stone in enumerate(snap.stones):
            r, c = divmod(idx, cols)
            box = pygame.Rect(x0 + c * (stone_w + gap), grid_top + r * (stone_h + gap), stone_w, stone_h)
            self._stone_hitboxes.append(box)

            fill = (75, 85, 99)
            edge = (156, 163, 175)
            if snap.selected_index == idx and resolution is not None:
                fill = (21, 128, 61) if resolution.outcome is Outcome.CORRECT else (185, 28, 28)
                edge = GOOD if resolution.outcome is Outcome.CORRECT else BAD
            elif resolution is None and idx == self._cursor:
                edge = ACTIVE_BG
            pygame.draw.rect(surface, fill, box, border_radius=12)
            pygame.draw.rect(surface, edge, box, 3, border_radius=12)

            for s_idx, symbol in enumerate(stone):
                slot = pygame.Rect(0, 0, sym, sym)
                slot.center = (box.centerx, box.y + 10 + sym // 2 + s_idx * sym)
                draw_symbol(surface, symbol, slot)

            label = self._tiny_font.render(str(idx + 1), True, TEXT_MUTED)
            surface.blit(label, (box.x + 6, box.y + 4))

    def _render_result(self, surface: pygame.Surface, body: pygame.Rect, snap: SymbolMatchSnapshot) -> None:
        res = snap.resolution
        if res is None:
            return
        good = res.outcome is Outcome.CORRECT
        headline = self._big_font.render("Correct!" if good else "Oops!", True, GOOD if good else BAD)
        surface.blit(headline, headline.get_rect(midtop=(body.centerx, body.y + 20)))
        y = _blit_lines(surface, self._small_font, snap.prompt.split("\n"), center_x=body.centerx, top=body.y + 90)
        if good:
            pts = self._stat_font.render(f"+{res.points_delta} points", True, GOOD)
            surface.blit(pts, pts.get_rect(midtop=(body.centerx, y + 10)))

    def _footer_hint(self, phase: Phase) -> str:
        if phase is Phase.SELECTION:
            return "1-8 or arrows + Enter: Pick a stone  |  Esc: Exit"
        if phase is Phase.MEMORIZATION:
            return "Memorize the totem  |  Esc: Exit"
        return "Enter/Space: Continue  |  Esc: Exit"

    def _move_cursor(self, delta: int) -> None:
        r = self._game.current_round
        if r is None or not r.candidates:
            return
        self._cursor = (self._cursor + delta) % len(r.candidates)

    def _on_game_exit(self) -> None:
        summary = session_summary_from_game(self._game)
        self._app.pop()
        if summary.rounds > 0:
            self._app.push(TextScreen(self._app, "Session Summary", format_summary(summary)))

    @staticmethod
    def _choice_from_key(key: int) -> int | None:
        mapping = {
            pygame.K_1: 1,
            pygame.K_2: 2,
            pygame.K_3: 3,
            pygame.K_4: 4,
            pygame.K_5: 5,
            pygame.K_6: 6,
            pygame.K_7: 7,
            pygame.K_8: 8,
            pygame.K_KP1: 1,
            pygame.K_KP2: 2,
            pygame.K_KP3: 3,
            pygame.K_KP4: 4,
            pygame.K_KP5: 5,
            pygame.K_KP6: 6,
            pygame.K_KP7: 7,
            pygame.K_KP8: 8,
        }
        return mapping.get(key)


class TextScreen:
    def __init__(self, app: App, title: str, lines: list[str]) -> None:
        self._app = app
        self._title = title
        self._lines = lines
        self._title_font = pygame.font.Font(None, 42)
        self._body_font = pygame.font.Font(None, 28)
        self._hint_font = pygame.font.Font(None, 22)

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        if event.key in (pygame.K_ESCAPE, pygame.K_BACKSPACE, pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
            self._app.pop()

    def render(self, surface: pygame.Surface) -> None:
        content = _draw_frame(surface, self._title, "RESULTS", (self._title_font, self._hint_font))
        y = content.y + 30
        for line in self._lines:
            txt = self._body_font.render(line, True, TEXT_MAIN)
            surface.blit(txt, (content.x + 60, y))
            y += 32
        foot = self._hint_font.render("Enter/Esc: Back", True, TEXT_MUTED)
        surface.blit(foot, foot.get_rect(midbottom=(content.centerx, content.bottom - 10)))


class CatalogScreen:
    """Browse catalog games by category, five per page, and hand one to the player."""

    _CATEGORIES: tuple[GameCategory | None, ...] = (None, *GameCategory)

    def __init__(
        self,
        app: App,
        *,
        catalog: GameCatalog,
        launcher: GameLauncher | None = None,
        locale: str = "en",
    ) -> None:
        self._app = app
        self._catalog = catalog
        self._launcher = launcher
        self._locale = locale
        self._category_idx = 0
        self._page = 1
        self._selected = 0
        self._status = ""
        self._status_good = True

        self._title_font = pygame.font.Font(None, 42)
        self._item_font = pygame.font.Font(None, 30)
        self._small_font = pygame.font.Font(None, 24)
        self._hint_font = pygame.font.Font(None, 20)

    @property
    def category(self) -> GameCategory | None:
        return self._CATEGORIES[self._category_idx]

    @property
    def page(self) -> int:
        return self._page

    @property
    def status(self) -> str:
        return self._status

    def current_page_games(self) -> list[CatalogGame]:
        return self._current_page().items

    def category_counts(self) -> dict[GameCategory, int]:
        grouped = group_by_category(self._catalog.list_games())
        return {category: len(games) for category, games in grouped.items()}

    def pager_label(self) -> str:
        page = self._current_page()
        back = "<" if page.has_previous else " "
        forward = ">" if page.has_next else " "
        return f"{back} Page {page.page}/{page.page_count} {forward}  ({page.total} games)"

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        if event.key in (pygame.K_ESCAPE, pygame.K_BACKSPACE):
            self._app.pop()
        elif event.key in (pygame.K_LEFT, pygame.K_a):
            self._set_category(self._category_idx - 1)
        elif event.key in (pygame.K_RIGHT, pygame.K_d):
            self._set_category(self._category_idx + 1)
        elif event.key in (pygame.K_PAGEUP, pygame.K_COMMA):
            self._set_page(self._page - 1)
        elif event.key in (pygame.K_PAGEDOWN, pygame.K_PERIOD):
            self._set_page(self._page + 1)
        elif event.key in (pygame.K_UP, pygame.K_w):
            self._move(-1)
        elif event.key in (pygame.K_DOWN, pygame.K_s):
            self._move(1)
        elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
            self._launch_selected()

    def render(self, surface: pygame.Surface) -> None:
        content = _draw_frame(surface, "Game Catalog", "CATALOG", (self._title_font, self._hint_font))
        page = self._current_page()
        counts = self.category_counts()

        # Category tabs.
        x = content.x + 20
        for idx, category in enumerate(self._CATEGORIES):
            if category is None:
                label = f"All ({sum(counts.values())})"
            else:
                label = f"{CATEGORY_INFO[category].name} ({counts[category]})"
            active = idx == self._category_idx
            txt = self._small_font.render(label, True, ACTIVE_TEXT if active else TEXT_MAIN)
            tab = pygame.Rect(x, content.y + 10, txt.get_width() + 20, 30)
            pygame.draw.rect(surface, ACTIVE_BG if active else (9, 20, 106), tab)
            pygame.draw.rect(surface, (62, 84, 152), tab, 1)
            surface.blit(txt, (tab.x + 10, tab.y + (tab.h - txt.get_height()) // 2))
            x = tab.right + 8

        list_rect = pygame.Rect(content.x + 20, content.y + 52, content.w // 2 - 30, content.h - 110)
        detail_rect = pygame.Rect(list_rect.right + 20, list_rect.y, content.right - list_rect.right - 40, list_rect.h)
        pygame.draw.rect(surface, (6, 13, 92), list_rect)
        pygame.draw.rect(surface, (78, 102, 170), list_rect, 1)
        pygame.draw.rect(surface, (6, 13, 92), detail_rect)
        pygame.draw.rect(surface, (78, 102, 170), detail_rect, 1)

        if not page.items:
            empty = self._small_font.render("No games available in this category.", True, TEXT_MUTED)
            surface.blit(empty, (list_rect.x + 12, list_rect.y + 12))
        y = list_rect.y + 8
        for idx, game in enumerate(page.items):
            row = pygame.Rect(list_rect.x + 8, y, list_rect.w - 16, 40)
            selected = idx == self._selected
            if selected:
                pygame.draw.rect(surface, ACTIVE_BG, row)
            label = _fit_label(self._item_font, game.title(self._locale), row.w - 16)
            txt = self._item_font.render(label, True, ACTIVE_TEXT if selected else TEXT_MAIN)
            surface.blit(txt, (row.x + 8, row.y + (row.h - txt.get_height()) // 2))
            y += 46

        if page.items:
            self._render_detail(surface, detail_rect, page.items[min(self._selected, len(page.items) - 1)])

        pager = self._small_font.render(self.pager_label(), True, TEXT_MUTED)
        surface.blit(pager, (list_rect.x, list_rect.bottom + 6))
        if self._status:
            st = self._small_font.render(self._status, True, GOOD if self._status_good else BAD)
            surface.blit(st, (detail_rect.x, detail_rect.bottom + 6))

        foot = self._hint_font.render(
            "Left/Right: Category  |  PgUp/PgDn: Page  |  Enter: Play  |  Esc: Back", True, TEXT_MUTED
        )
        surface.blit(foot, foot.get_rect(midbottom=(content.centerx, content.bottom - 6)))

    def _render_detail(self, surface: pygame.Surface, rect: pygame.Rect, game: CatalogGame) -> None:
        title = self._item_font.render(_fit_label(self._item_font, game.title(self._locale), rect.w - 20), True, TEXT_MAIN)
        surface.blit(title, (rect.x + 10, rect.y + 10))
        y = rect.y + 48
        for line in self._wrap(game.description(self._locale), rect.w - 20):
            surface.blit(self._hint_font.render(line, True, TEXT_MUTED), (rect.x + 10, y))
            y += 20
        y += 10
        surface.blit(self._hint_font.render("Skills: " + ", ".join(game.skill_names()), True, TEXT_MAIN), (rect.x + 10, y))
        y += 24
        platforms = ", ".join(game.platform_labels()) or "Web only"
        surface.blit(self._hint_font.render(f"Platforms: {platforms}", True, TEXT_MAIN), (rect.x + 10, y))

    def _wrap(self, text: str, max_width: int) -> list[str]:
        lines: list[str] = []
        line = ""
        for word in text.split():
            trial = f"{line} {word}".strip()
            if self._hint_font.size(trial)[0] <= max_width or not line:
                line = trial
            else:
                lines.append(line)
                line = word
        if line:
            lines.append(line)
        return lines

    def _current_page(self) -> CatalogPage:
        return paginate(self._catalog.list_games(self.category), page=self._page)

    def _set_category(self, idx: int) -> None:
        self._category_idx = idx % len(self._CATEGORIES)
        self._page = 1
        self._selected = 0

    def _set_page(self, page: int) -> None:
        self._page = paginate(self._catalog.list_games(self.category), page=page).page
        self._selected = 0

    def _move(self, delta: int) -> None:
        items = self.current_page_games()
        if not items:
            return
        self._selected = (self._selected + delta) % len(items)

    def _launch_selected(self) -> None:
        items = self.current_page_games()
        if not items:
            return
        game = items[min(self._selected, len(items) - 1)]
        if self._launcher is None:
            self._status = f"{game.title(self._locale)}: game player not available offline."
            self._status_good = False
            return

        self._status = f"Loading {game.title(self._locale)}..."
        self._status_good = True
        try:
            self._launcher.launch_game(game.key, PLAYER_REGION, self._on_complete)
        except Exception:
            logger.exception("launching %s failed", game.key)
            self._on_complete(GameCompletion(status=LaunchStatus.ABORTED, key=game.key))

    def _on_complete(self, completion: GameCompletion) -> None:
        if completion.status is LaunchStatus.COMPLETED:
            score = "" if completion.score is None else f" Score: {completion.score}"
            self._status = f"Game completed.{score}"
            self._status_good = True
        elif completion.status is LaunchStatus.LOGIN_ERROR:
            self._status = "Login error: the game player rejected the session."
            self._status_good = False
        else:
            self._status = "Game aborted."
            self._status_good = False


def run(
    *,
    max_frames: int | None = None,
    event_injector: Callable[[int], None] | None = None,
    catalog: GameCatalog | None = None,
    launcher: GameLauncher | None = None,
) -> int:
    pygame.init()

    pygame.display.set_caption("Brain Trainer")
    surface = pygame.display.set_mode(WINDOW_SIZE, pygame.RESIZABLE)

    font = pygame.font.Font(None, 36)
    clock = pygame.time.Clock()

    app = App(surface=surface, font=font)
    real_clock = RealClock()
    game_catalog = catalog or default_catalog()

    def open_symbol_match() -> None:
        seed = new_seed()
        logger.info("starting Symbol Match (seed=%d)", seed)
        app.push(
            SymbolMatchScreen(
                app,
                game_factory=lambda on_exit: build_symbol_match_game(on_exit=on_exit, clock=real_clock, seed=seed),
            )
        )

    def open_catalog() -> None:
        app.push(CatalogScreen(app, catalog=game_catalog, launcher=launcher))

    main_items = [
        MenuItem("Symbol Match", open_symbol_match),
        MenuItem("Game Catalog", open_catalog),
        MenuItem("Quit", app.quit),
    ]

    app.push(MenuScreen(app, "Main Menu", main_items, is_root=True))

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            clock.tick(TARGET_FPS)
    finally:
        pygame.quit()

    return 0
