"""Raster text sprites: labels drawn into an image and mapped onto a billboard quad."""

import logging
from functools import lru_cache

from PIL import Image, ImageDraw, ImageFont

from .arena import SceneObject, SurfaceMaterial
from .description import hex_to_rgba
from .graph import BuildContext, make_plane, translation

logger = logging.getLogger(__name__)

SMALL_CANVAS = (128, 64)
LABEL_CANVAS = (256, 64)
FONT_SIZE = 24
_FONT_FILES = {
    False: ("DejaVuSans.ttf", "Arial.ttf", "arial.ttf"),
    True: ("DejaVuSans-Bold.ttf", "Arial Bold.ttf", "arialbd.ttf"),
}


@lru_cache(maxsize=4)
def _font(bold: bool):
    for filename in _FONT_FILES[bold]:
        try:
            return ImageFont.truetype(filename, FONT_SIZE)
        except OSError:
            continue
    logger.debug("No TrueType font found; using Pillow's default font")
    return ImageFont.load_default()


def render_text(message: str, color: int = 0x000000, canvas=SMALL_CANVAS,
                bold: bool = False) -> Image.Image:
    """White card with ``message`` centred in ``color``."""
    image = Image.new("RGBA", canvas, (255, 255, 255, 255))
    draw = ImageDraw.Draw(image)
    font = _font(bold)
    left, top, right, bottom = draw.textbbox((0, 0), message, font=font)
    x = (canvas[0] - (right - left)) / 2 - left
    y = (canvas[1] - (bottom - top)) / 2 - top
    draw.text((x, y), message, fill=tuple(hex_to_rgba(color)), font=font)
    return image


def add_text_sprite(ctx: BuildContext, node: str, message: str, position,
                    kind: str, color: int = 0x000000, scale=(1.0, 0.5),
                    canvas=SMALL_CANVAS, bold=False, parent=None, room=None,
                    layer="content") -> SceneObject:
    """Billboard quad of size ``scale`` showing ``message``, centred at ``position``."""
    image = render_text(message, color, canvas, bold)
    material = SurfaceMaterial(
        name=f"{node}-sprite",
        color=[255, 255, 255, 255],
        double_sided=True,
        shading="sprite",
        image=image,
    )
    quad = make_plane(scale[0], scale[1])
    return ctx.add_mesh(node, quad, kind, parent=parent, transform=translation(*position),
                        material=material, room=room, layer=layer, billboard=True,
                        text=message)
