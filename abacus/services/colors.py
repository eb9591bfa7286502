"""Perceptual color scale for contribution graph intensity buckets.

CSS `rgb()`/`hsl()` notation is parsed here, everything else (hex, named
colors) by matplotlib. Colors are interpolated in CIE LAB (D65 white
point) so that consecutive buckets read as evenly spaced steps.
"""

import colorsys
import re
from collections.abc import Callable
from collections.abc import Sequence

import numpy as np
from matplotlib.colors import to_hex
from matplotlib.colors import to_rgba

from abacus.services.intensity import MAX_INTENSITY


WHITE_POINT = np.array([0.950470, 1.0, 1.088830])
RGB_TO_XYZ = np.array(
    [
        [0.4124564, 0.3575761, 0.1804375],
        [0.2126729, 0.7151522, 0.0721750],
        [0.0193339, 0.1191920, 0.9503041],
    ]
)
XYZ_TO_RGB = np.array(
    [
        [3.2404542, -1.5371385, -0.4985314],
        [-0.9692660, 1.8760108, 0.0415560],
        [0.0556434, -0.2040259, 1.0572252],
    ]
)
T0 = 4 / 29
T1 = 6 / 29
T2 = 3 * T1**2
T3 = T1**3

# One brighten/saturate step in LAB lightness or LCH chroma units.
ADJUST_STEP = 18

BACKGROUND_MIX_RATIO = 0.15
SEPARATOR_ALPHA = 0.75
SEPARATOR_ALPHA_HEX = "C0"

CSS_FUNCTION_PATTERN = re.compile(r"^\s*(rgba?|hsla?)\(([^)]*)\)\s*$", re.IGNORECASE)
CSS_SEPARATOR_PATTERN = re.compile(r"\s*[,/]\s*|\s+")


def rgb_to_lab(rgb: Sequence[float]) -> np.ndarray:
    channels = np.asarray(rgb, dtype=float)
    linear = np.where(
        channels <= 0.04045, channels / 12.92, ((channels + 0.055) / 1.055) ** 2.4
    )
    xyz = (RGB_TO_XYZ @ linear) / WHITE_POINT
    f = np.where(xyz > T3, np.cbrt(xyz), xyz / T2 + T0)
    return np.array([116 * f[1] - 16, 500 * (f[0] - f[1]), 200 * (f[1] - f[2])])


def lab_to_rgb(lab: Sequence[float]) -> np.ndarray:
    lightness, a, b = lab
    fy = (lightness + 16) / 116
    f = np.array([fy + a / 500, fy, fy - b / 200])
    xyz = WHITE_POINT * np.where(f > T1, f**3, T2 * (f - T0))
    linear = np.clip(XYZ_TO_RGB @ xyz, 0.0, 1.0)
    return np.where(
        linear <= 0.0031308, 12.92 * linear, 1.055 * linear ** (1 / 2.4) - 0.055
    )


def _css_channel(token: str, scale: float) -> float:
    # Percentages are relative to `scale`.
    if token.endswith("%"):
        return float(token[:-1]) / 100 * scale
    return float(token)


def _css_alpha(tokens: Sequence[str]) -> float:
    if not tokens:
        return 1.0
    return min(max(_css_channel(tokens[0], 1.0), 0.0), 1.0)


def _parse_css_function(name: str, body: str) -> tuple[float, float, float, float]:
    tokens = [token for token in CSS_SEPARATOR_PATTERN.split(body.strip()) if token]
    if len(tokens) not in (3, 4):
        raise ValueError(f"Invalid color: {name}({body})")

    if name.startswith("rgb"):
        red, green, blue = (
            min(max(_css_channel(token, 255) / 255, 0.0), 1.0) for token in tokens[:3]
        )
        return red, green, blue, _css_alpha(tokens[3:])

    hue = float(tokens[0].lower().removesuffix("deg")) / 360 % 1
    saturation, lightness = (
        min(max(float(token.removesuffix("%")) / 100, 0.0), 1.0)
        for token in tokens[1:3]
    )
    # colorsys works in HLS order.
    red, green, blue = colorsys.hls_to_rgb(hue, lightness, saturation)
    return red, green, blue, _css_alpha(tokens[3:])


def parse_rgba(color: str) -> tuple[float, float, float, float]:
    """Parse a CSS color (hex, named, `rgb()`, `rgba()`, `hsl()`, `hsla()`).

    Channels are returned as floats in [0, 1].

    Raises:
        ValueError: If the color string cannot be parsed.
    """

    match = CSS_FUNCTION_PATTERN.match(color)
    if match:
        return _parse_css_function(match.group(1).lower(), match.group(2))
    return to_rgba(color)


def parse_lab(color: str) -> np.ndarray:
    """Parse a CSS color into LAB, ignoring its alpha.

    Raises:
        ValueError: If the color string cannot be parsed.
    """

    return rgb_to_lab(parse_rgba(color)[:3])


def lab_to_hex(lab: Sequence[float]) -> str:
    return to_hex(np.clip(lab_to_rgb(lab), 0.0, 1.0))


def mix(start: np.ndarray, end: np.ndarray, ratio: float) -> np.ndarray:
    return start + (end - start) * ratio


def brighten(lab: np.ndarray, amount: float) -> np.ndarray:
    return np.array([lab[0] + ADJUST_STEP * amount, lab[1], lab[2]])


def saturate(lab: np.ndarray, amount: float) -> np.ndarray:
    chroma = np.hypot(lab[1], lab[2])
    hue = np.arctan2(lab[2], lab[1])
    chroma = max(0.0, chroma + ADJUST_STEP * amount)
    return np.array([lab[0], chroma * np.cos(hue), chroma * np.sin(hue)])


def _interpolate(stops: Sequence[np.ndarray], position: float) -> np.ndarray:
    segments = len(stops) - 1
    scaled = min(max(position, 0.0), 1.0) * segments
    index = min(int(scaled), segments - 1)
    return mix(stops[index], stops[index + 1], scaled - index)


def _lightness_corrected(stops: Sequence[np.ndarray], position: float) -> float:
    """Shift `position` so lightness grows linearly along the scale.

    Bisects over the scale (at most 20 rounds) until the lightness at the
    returned position is within 0.01 of the linear target.
    """

    start_lightness = stops[0][0]
    end_lightness = stops[-1][0]
    descending = start_lightness > end_lightness
    ideal = start_lightness + (end_lightness - start_lightness) * position

    low, high = 0.0, 1.0
    current = position
    diff = _interpolate(stops, current)[0] - ideal
    for _ in range(20):
        if abs(diff) <= 1e-2:
            break
        if descending:
            diff = -diff
        if diff < 0:
            low = current
            current += (high - current) * 0.5
        else:
            high = current
            current += (low - current) * 0.5
        diff = _interpolate(stops, current)[0] - ideal
    return current


def lab_scale(stops: Sequence[np.ndarray], count: int) -> list[np.ndarray]:
    """Return `count` evenly spaced LAB colors along the stops, endpoints included."""

    if count == 1:
        return [stops[0]]
    positions = [index / (count - 1) for index in range(count)]
    return [
        _interpolate(stops, _lightness_corrected(stops, position))
        for position in positions
    ]


def build_palette(base_color: str, cell_background: str) -> tuple[str, ...]:
    """Build the ten bucket colors; bucket 6 is the base color itself."""

    base = parse_lab(base_color)
    faint = mix(parse_lab(cell_background), base, BACKGROUND_MIX_RATIO)
    boosted = [
        saturate(brighten(base, 0.75), 0.5),
        saturate(brighten(base, 1.5), 1.0),
    ]

    rising = lab_scale([faint, base], 7)
    peak = lab_scale([base, *boosted], 4)
    return (
        cell_background,
        *(lab_to_hex(lab) for lab in rising[1:]),
        *(lab_to_hex(lab) for lab in peak[1:]),
    )


def create_color_scale(base_color: str, cell_background: str) -> Callable[[int], str]:
    """Return a bucket -> color function; bucket 0 is always `cell_background`."""

    palette = build_palette(base_color, cell_background)

    def color_for(intensity: int) -> str:
        return palette[min(max(intensity, 0), MAX_INTENSITY)]

    return color_for


def with_opacity(color: str) -> str:
    """Return `color` at 75% opacity, keeping hex colors in hex form.

    Any existing alpha is replaced. Non-hex colors come back as `rgba()`.
    """

    if color.startswith("#"):
        digits = color[1:]
        if len(digits) in (3, 4):
            digits = "".join(digit * 2 for digit in digits[:3])
        return f"#{digits[:6]}{SEPARATOR_ALPHA_HEX}"

    red, green, blue, _ = parse_rgba(color)
    return (
        f"rgba({round(red * 255)}, {round(green * 255)}, {round(blue * 255)}, "
        f"{SEPARATOR_ALPHA})"
    )
