"""
Color contrast check for one foreground/background pair.

The ratio reported to clients always comes from the WCAG luminance formula
(``color.contrast_ratio``). axe's own ``color-contrast`` result is run on a
rendered sample and echoed next to it for corroboration.
"""

from __future__ import annotations

import logging
from typing import Any

from ..axe import AxeBuilder, load_axe_source
from ..color import assess_contrast, parse_color
from ..config import A11yConfig
from ..report import extract_engine_contrast, shape_contrast
from .base import SmartToolError, loaded_page

logger = logging.getLogger("mcp.a11y.tools")

CONTRAST_RULES = ("color-contrast",)


def build_contrast_html(foreground_hex: str, background_hex: str, font_size: float, is_bold: bool) -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
  <head>
    <title>Contrast sample</title>
    <style>
      .test-element {{
        color: {foreground_hex};
        background-color: {background_hex};
        font-size: {font_size:g}px;
        font-weight: {"bold" if is_bold else "normal"};
        padding: 20px;
      }}
    </style>
  </head>
  <body>
    <main><div class="test-element">Test Text</div></main>
  </body>
</html>
"""


def check_color_contrast(
    config: A11yConfig,
    foreground: str,
    background: str,
    font_size: float = 16,
    is_bold: bool = False,
) -> dict[str, Any]:
    """Assess a color pair against WCAG AA/AAA.

    Raises:
        InvalidColorFormat: if either color is not hex, rgb() or hsv()
    """
    fg = parse_color(foreground)
    bg = parse_color(background)
    assessment = assess_contrast(fg, bg, font_size, is_bold)

    source = load_axe_source(config)
    html = build_contrast_html(fg.hex, bg.hex, font_size, is_bold)
    with loaded_page(config, tool="check_color_contrast", html=html) as page:
        try:
            report = AxeBuilder(page, source).with_rules(CONTRAST_RULES).analyze()
        except Exception as e:
            raise SmartToolError(tool="check_color_contrast", action="analyze", reason=str(e)) from e

    engine_ratio, engine_method = extract_engine_contrast(report)
    if engine_ratio is not None and abs(engine_ratio - assessment.contrast_ratio) >= 0.01:
        logger.info(
            "engine contrast differs: computed=%s engine=%s (%s)",
            assessment.contrast_ratio,
            engine_ratio,
            engine_method,
        )

    return shape_contrast(
        foreground=foreground,
        background=background,
        assessment=assessment,
        engine_ratio=engine_ratio,
        engine_method=engine_method,
    )
