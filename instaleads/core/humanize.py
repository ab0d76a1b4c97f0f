"""Human-like keyboard and mouse input for Playwright pages."""

import asyncio
import math
import random

from playwright.async_api import Page

TYPO_PROBABILITY = 0.03
PAUSE_CHARACTERS = frozenset(" .,-")


def _ms(low: int, high: int, rng: random.Random) -> float:
    return rng.randint(low, high) / 1000


def should_typo(char: str, rng: random.Random) -> bool:
    if not (char.isascii() and char.isalnum()):
        return False
    return rng.random() < TYPO_PROBABILITY


def typo_variant(char: str, rng: random.Random) -> str:
    """Return a neighbouring lowercase letter, or the char itself if none fits."""
    if not (char.isascii() and char.isalpha()):
        return char
    code = ord(char.lower()) + (1 if rng.random() > 0.5 else -1)
    if not ord("a") <= code <= ord("z"):
        return char
    return chr(code)


def ease_in_out_sine(value: float) -> float:
    return -(math.cos(math.pi * value) - 1) / 2


def bezier_point(
    t: float,
    p0: tuple[float, float],
    p1: tuple[float, float],
    p2: tuple[float, float],
    p3: tuple[float, float],
) -> tuple[float, float]:
    """Point on a cubic Bézier curve at parameter t."""
    k = 1 - t
    x = k ** 3 * p0[0] + 3 * k ** 2 * t * p1[0] + 3 * k * t ** 2 * p2[0] + t ** 3 * p3[0]
    y = k ** 3 * p0[1] + 3 * k ** 2 * t * p1[1] + 3 * k * t ** 2 * p2[1] + t ** 3 * p3[1]
    return x, y


async def human_type(page: Page, selector: str, text: str, rng: random.Random | None = None) -> None:
    """
    Click a field and type into it with uneven delays and occasional typos.

    Typos are corrected with Backspace immediately, so the final field value
    always equals `text`.
    """
    rng = rng or random.Random()
    await page.locator(selector).first.click(timeout=5000)

    for char in text:
        if should_typo(char, rng):
            await page.keyboard.type(typo_variant(char, rng), delay=rng.randint(35, 90))
            await asyncio.sleep(_ms(40, 110, rng))
            await page.keyboard.press("Backspace")
            await asyncio.sleep(_ms(30, 90, rng))

        await page.keyboard.type(char, delay=rng.randint(30, 110))

        if char in PAUSE_CHARACTERS:
            await asyncio.sleep(_ms(90, 260, rng))


async def human_move(page: Page, selector: str, rng: random.Random | None = None) -> None:
    """Move the mouse to the centre of an element along a jittered Bézier path."""
    rng = rng or random.Random()
    box = await page.locator(selector).first.bounding_box()
    if not box:
        return

    viewport = page.viewport_size or {"width": 1366, "height": 768}
    start = (
        rng.randint(int(viewport["width"] * 0.1), int(viewport["width"] * 0.9)),
        rng.randint(int(viewport["height"] * 0.1), int(viewport["height"] * 0.9)),
    )
    end = (box["x"] + box["width"] / 2, box["y"] + box["height"] / 2)

    spread_x = int(abs(end[0] - start[0]) * 0.35)
    spread_y = int(abs(end[1] - start[1]) * 0.35)
    control_a = (start[0] + rng.randint(-spread_x, spread_x), start[1] + rng.randint(-spread_y, spread_y))
    control_b = (end[0] + rng.randint(-spread_x, spread_x), end[1] + rng.randint(-spread_y, spread_y))
    steps = rng.randint(14, 32)

    await page.mouse.move(*start)

    for step in range(1, steps + 1):
        x, y = bezier_point(ease_in_out_sine(step / steps), start, control_a, control_b, end)
        await page.mouse.move(x + (rng.random() - 0.5) * 1.6, y + (rng.random() - 0.5) * 1.6)
        await asyncio.sleep(_ms(2, 10, rng))
