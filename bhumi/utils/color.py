"""
Color parsing and shading helpers.

Config files may give colors as:
- HEX: "#RRGGBB" or "#RRGGBBAA"
- CSV: "R,G,B" or "(R, G, B, A)"
- lists of 0-255 ints, or of 0.0-1.0 floats

Everything inside the engine is an RGBA tuple of ints in 0-255.
"""

import re
from typing import Tuple, Union, List, Optional, Sequence

import numpy as np

Color = Tuple[int, int, int, int]  # RGBA
ColorInput = Union[str, List, Tuple]

BLACK: Color = (0, 0, 0, 255)
WHITE: Color = (255, 255, 255, 255)

HEX_COLOR_PATTERN = re.compile(r'^#?([0-9a-fA-F]{6}|[0-9a-fA-F]{8})$')
CSV_COLOR_PATTERN = re.compile(
    r'^[\(\[]?\s*([0-9.]+)\s*,\s*([0-9.]+)\s*,\s*([0-9.]+)(?:\s*,\s*([0-9.]+))?\s*[\)\]]?$'
)


def normalize_color(color: Sequence[Union[int, float]]) -> Color:
    """
    Normalize an RGB/RGBA sequence to a clamped RGBA int tuple.

    A color made only of floats in 0.0-1.0 is scaled to 0-255.

    Examples:
        >>> normalize_color((255, 0, 0))
        (255, 0, 0, 255)
        >>> normalize_color((1.0, 0.5, 0.0))
        (255, 128, 0, 255)
    """
    if len(color) < 3:
        raise ValueError(f"Color must have at least 3 components, got {len(color)}")

    is_float_color = (
        all(isinstance(c, float) for c in color) and
        all(0.0 <= c <= 1.0 for c in color)
    )
    if is_float_color:
        values = [int(round(c * 255)) for c in color[:4]]
    else:
        values = [int(c) for c in color[:4]]

    clamped = [max(0, min(255, v)) for v in values]
    if len(clamped) == 3:
        clamped.append(255)
    return (clamped[0], clamped[1], clamped[2], clamped[3])


def parse_hex_color(hex_str: str) -> Optional[Color]:
    """Parse "#RRGGBB" / "#RRGGBBAA" (leading # optional). None if malformed."""
    match = HEX_COLOR_PATTERN.match(hex_str.strip())
    if not match:
        return None
    hex_value = match.group(1)
    channels = [int(hex_value[i:i + 2], 16) for i in range(0, len(hex_value), 2)]
    return normalize_color(channels)


def parse_csv_color(csv_str: str) -> Optional[Color]:
    """Parse "R,G,B[,A]" with optional brackets. None if malformed."""
    match = CSV_COLOR_PATTERN.match(csv_str.strip())
    if not match:
        return None
    values = [match.group(i) for i in range(1, 5) if match.group(i) is not None]
    try:
        if any('.' in v for v in values):
            return normalize_color(tuple(float(v) for v in values))
        return normalize_color(tuple(int(v) for v in values))
    except ValueError:
        return None


def parse_color(color: ColorInput) -> Color:
    """
    Parse a color from any supported config format to RGBA.

    Raises:
        ValueError: If the format is not recognized

    Examples:
        >>> parse_color("#14141E")
        (20, 20, 30, 255)
        >>> parse_color([200, 40, 40])
        (200, 40, 40, 255)
    """
    if isinstance(color, str):
        result = parse_hex_color(color)
        if result is None:
            result = parse_csv_color(color)
        if result is None:
            raise ValueError(f"Invalid color format: {color}")
        return result

    if isinstance(color, (list, tuple)):
        return normalize_color(tuple(color))

    raise ValueError(f"Unsupported color type: {type(color).__name__}")


def as_array(color: Color) -> np.ndarray:
    """RGBA tuple as a uint8 array, ready for numpy pixel writes."""
    return np.asarray(color, dtype=np.uint8).reshape(4)
