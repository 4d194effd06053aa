"""
Procedural floor textures.

Each family is a pure function of its colors and a seed, returning an RGB
pixel buffer. Patterns are reproducible for a fixed seed; without one a
fresh seed is drawn so every build looks slightly different. All textures
are sampled with repeat wrapping on both axes.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np
from PIL import Image, ImageDraw

GROUT_COLOR = (0x99, 0x99, 0x99)
REPEAT = "repeat"


@dataclass
class ProceduralTexture:
    family: str
    pixels: np.ndarray            # (H, W, 3) uint8
    seed: Optional[int] = None
    wrap_s: str = REPEAT
    wrap_t: str = REPEAT

    @property
    def size(self):
        return self.pixels.shape[1], self.pixels.shape[0]

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.pixels)


def _rgb(color: int):
    return ((color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF)


def resolve_seed(seed: Optional[int]) -> int:
    if seed is None:
        seed = int(np.random.SeedSequence().entropy % (2 ** 32))
    return seed


def _vary(color: int, offsets: np.ndarray) -> np.ndarray:
    """Shift an RGB color by per-sample offsets, clipped to 0..255."""
    base = np.array(_rgb(color), dtype=np.int16)
    return np.clip(base[None, :] + offsets[:, None], 0, 255).astype(np.uint8)


def tile_texture(color1: int, color2: int, grid: int, size: int = 256) -> ProceduralTexture:
    """Checkerboard of ``grid`` x ``grid`` cells outlined with grout lines."""
    image = Image.new("RGB", (size, size), _rgb(color1))
    draw = ImageDraw.Draw(image)
    tile = size / grid

    for x in range(grid):
        for y in range(grid):
            fill = _rgb(color1 if (x + y) % 2 == 0 else color2)
            x0, y0 = round(x * tile), round(y * tile)
            x1, y1 = round((x + 1) * tile) - 1, round((y + 1) * tile) - 1
            draw.rectangle([x0, y0, x1, y1], fill=fill, outline=GROUT_COLOR, width=1)

    return ProceduralTexture("tile", np.asarray(image, dtype=np.uint8).copy())


def wood_texture(base_color: int, grain_color: int, size: int = 512,
                 seed: Optional[int] = None, lines: int = 30) -> ProceduralTexture:
    """Base tone crossed by randomized wavy grain lines."""
    seed = resolve_seed(seed)
    rng = np.random.default_rng(seed)
    image = Image.new("RGB", (size, size), _rgb(base_color))
    draw = ImageDraw.Draw(image)

    xs = np.arange(0, size, 20)
    for _ in range(lines):
        y = rng.random() * size
        ys = y + rng.random(len(xs)) * 10 - 5
        points = [(0.0, float(y))] + [(float(px), float(py)) for px, py in zip(xs, ys)]
        draw.line(points, fill=_rgb(grain_color), width=2)

    return ProceduralTexture("wood", np.asarray(image, dtype=np.uint8).copy(), seed)


def carpet_texture(color: int, size: int = 256, seed: Optional[int] = None,
                   speckles: int = 5000) -> ProceduralTexture:
    """Base tone with single-pixel tonal noise in [-10, 10)."""
    seed = resolve_seed(seed)
    rng = np.random.default_rng(seed)
    pixels = np.empty((size, size, 3), dtype=np.uint8)
    pixels[:] = _rgb(color)

    xs = rng.integers(0, size, speckles)
    ys = rng.integers(0, size, speckles)
    pixels[ys, xs] = _vary(color, rng.integers(-10, 10, speckles))

    return ProceduralTexture("carpet", pixels, seed)


def stone_texture(color: int, size: int = 256, seed: Optional[int] = None,
                  cracks: int = 20, blotches: int = 50) -> ProceduralTexture:
    """Random hairline cracks followed by round tonal blotches."""
    seed = resolve_seed(seed)
    rng = np.random.default_rng(seed)
    image = Image.new("RGB", (size, size), _rgb(color))
    draw = ImageDraw.Draw(image)

    for _ in range(cracks):
        start = rng.random(2) * size
        steps = rng.random((5, 2)) * 40 - 20
        path = np.vstack([start, start + np.cumsum(steps, axis=0)])
        draw.line([tuple(p) for p in path.tolist()], fill=GROUT_COLOR, width=1)

    tones = _vary(color, rng.integers(-15, 15, blotches))
    for tone in tones:
        cx, cy = rng.random(2) * size
        radius = 5 + rng.random() * 15
        draw.ellipse([cx - radius, cy - radius, cx + radius, cy + radius],
                     fill=tuple(int(c) for c in tone))

    return ProceduralTexture("stone", np.asarray(image, dtype=np.uint8).copy(), seed)


def texture_for_finish(finish, seed: Optional[int] = None) -> Optional[ProceduralTexture]:
    """Build the texture for a :class:`~.semantics.FloorFinish`; flat tints have none."""
    if finish.kind == "tile":
        return tile_texture(finish.colors[0], finish.colors[1], finish.grid)
    if finish.kind == "wood":
        return wood_texture(finish.colors[0], finish.colors[1], seed=seed)
    if finish.kind == "carpet":
        return carpet_texture(finish.colors[0], seed=seed)
    if finish.kind == "stone":
        return stone_texture(finish.colors[0], seed=seed)
    return None
