"""
Color parsing and WCAG 2.x contrast math.

Pure functions only: nothing here talks to the browser or to axe-core.
Accepted notations: ``#rgb``, ``#rrggbb``, ``rgb(r, g, b)`` and
``hsv(h, s%, v%)``.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from .errors import InvalidParamsError

_HEX_RE = re.compile(r"^#([0-9a-f]{3}|[0-9a-f]{6})$", re.IGNORECASE)
_RGB_RE = re.compile(r"^rgb\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*\)$", re.IGNORECASE)
_NUM = r"(\d+(?:\.\d+)?|\.\d+)"
_HSV_RE = re.compile(
    rf"^hsv\(\s*{_NUM}\s*(?:deg)?\s*,\s*{_NUM}\s*%?\s*,\s*{_NUM}\s*%?\s*\)$",
    re.IGNORECASE,
)

LARGE_TEXT_PX = 18.0
LARGE_BOLD_TEXT_PX = 14.0


class InvalidColorFormat(InvalidParamsError):
    """Color string matches none of the supported notations."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(
            f'Unsupported color format: "{value}" '
            '(expected "#RGB", "#RRGGBB", "rgb(r, g, b)" or "hsv(h, s%, v%)")'
        )


@dataclass(frozen=True, slots=True)
class RGBColor:
    r: int
    g: int
    b: int

    @property
    def hex(self) -> str:
        return rgb_to_hex(self)


@dataclass(frozen=True, slots=True)
class ContrastAssessment:
    foreground: RGBColor
    background: RGBColor
    font_size_px: float
    is_bold: bool
    contrast_ratio: float
    is_large_text: bool
    required_ratio_aa: float
    required_ratio_aaa: float
    passes_aa: bool
    passes_aaa: bool


def _round_half_up(value: float, places: int = 0) -> float:
    # Rounds the exact binary value, as JavaScript Math.round/toFixed do for positives.
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _channel(value: float) -> int:
    return int(_round_half_up(_clamp(value, 0.0, 255.0)))


def parse_color(text: str) -> RGBColor:
    """Parse a color string into an 8-bit RGB triple.

    Raises:
        InvalidColorFormat: if ``text`` matches none of the supported notations
    """
    if not isinstance(text, str):
        raise InvalidColorFormat(str(text))
    raw = text.strip()

    match = _HEX_RE.match(raw)
    if match:
        digits = match.group(1)
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        return RGBColor(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))

    match = _RGB_RE.match(raw)
    if match:
        channels = [int(part) for part in match.groups()]
        if any(ch > 255 for ch in channels):
            raise InvalidColorFormat(text)
        return RGBColor(*channels)

    match = _HSV_RE.match(raw)
    if match:
        h, s, v = (float(part) for part in match.groups())
        if h > 360 or s > 100 or v > 100:
            raise InvalidColorFormat(text)
        return hsv_to_rgb(h, s / 100.0, v / 100.0)

    raise InvalidColorFormat(text)


def hsv_to_rgb(h: float, s: float, v: float) -> RGBColor:
    """Convert HSV (h in degrees, s and v in [0, 1]) to RGB."""
    h = _clamp(h, 0.0, 360.0)
    s = _clamp(s, 0.0, 1.0)
    v = _clamp(v, 0.0, 1.0)

    c = v * s
    x = c * (1 - abs(math.fmod(h / 60.0, 2) - 1))
    m = v - c

    if h < 60:
        r, g, b = c, x, 0.0
    elif h < 120:
        r, g, b = x, c, 0.0
    elif h < 180:
        r, g, b = 0.0, c, x
    elif h < 240:
        r, g, b = 0.0, x, c
    elif h < 300:
        r, g, b = x, 0.0, c
    else:
        r, g, b = c, 0.0, x

    return RGBColor(_channel((r + m) * 255), _channel((g + m) * 255), _channel((b + m) * 255))


def rgb_to_hex(color: RGBColor) -> str:
    return "#" + "".join(f"{_channel(ch):02x}" for ch in (color.r, color.g, color.b))


def _linearize(channel: int) -> float:
    v = channel / 255.0
    return v / 12.92 if v <= 0.03928 else ((v + 0.055) / 1.055) ** 2.4


def relative_luminance(color: RGBColor) -> float:
    return 0.2126 * _linearize(color.r) + 0.7152 * _linearize(color.g) + 0.0722 * _linearize(color.b)


def contrast_ratio(first: RGBColor, second: RGBColor) -> float:
    """WCAG 2.x contrast ratio, rounded to two decimals (1.0 .. 21.0)."""
    l1 = relative_luminance(first)
    l2 = relative_luminance(second)
    ratio = (max(l1, l2) + 0.05) / (min(l1, l2) + 0.05)
    return _round_half_up(ratio, 2)


def is_large_text(font_size_px: float, is_bold: bool) -> bool:
    return font_size_px >= LARGE_TEXT_PX or (font_size_px >= LARGE_BOLD_TEXT_PX and is_bold)


def required_ratios(large_text: bool) -> tuple[float, float]:
    """Return the (AA, AAA) minimum ratios for normal or large text."""
    if large_text:
        return 3.0, 4.5
    return 4.5, 7.0


def assess_contrast(
    foreground: RGBColor,
    background: RGBColor,
    font_size_px: float = 16,
    is_bold: bool = False,
) -> ContrastAssessment:
    ratio = contrast_ratio(foreground, background)
    large = is_large_text(font_size_px, is_bold)
    aa, aaa = required_ratios(large)
    return ContrastAssessment(
        foreground=foreground,
        background=background,
        font_size_px=font_size_px,
        is_bold=is_bold,
        contrast_ratio=ratio,
        is_large_text=large,
        required_ratio_aa=aa,
        required_ratio_aaa=aaa,
        passes_aa=ratio >= aa,
        passes_aaa=ratio >= aaa,
    )


__all__ = [
    "ContrastAssessment",
    "InvalidColorFormat",
    "RGBColor",
    "assess_contrast",
    "contrast_ratio",
    "hsv_to_rgb",
    "is_large_text",
    "parse_color",
    "relative_luminance",
    "required_ratios",
    "rgb_to_hex",
]
