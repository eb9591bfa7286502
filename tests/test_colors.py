import re

import numpy as np
import pytest

from abacus.services.colors import brighten
from abacus.services.colors import build_palette
from abacus.services.colors import create_color_scale
from abacus.services.colors import lab_to_hex
from abacus.services.colors import parse_lab
from abacus.services.colors import parse_rgba
from abacus.services.colors import saturate
from abacus.services.colors import with_opacity


def test_parse_lab_reference_colors() -> None:
    assert np.allclose(parse_lab("#ffffff"), [100, 0, 0], atol=0.01)
    assert np.allclose(parse_lab("#000000"), [0, 0, 0], atol=0.01)


def test_lab_round_trip_preserves_hex() -> None:
    assert lab_to_hex(parse_lab("#336699")) == "#336699"


def test_parse_lab_rejects_unknown_color() -> None:
    with pytest.raises(ValueError):
        parse_lab("definitely-not-a-color")


def test_brighten_and_saturate_adjust_lab_components() -> None:
    lab = np.array([50.0, 3.0, 4.0])

    assert np.allclose(brighten(lab, 1.5), [77.0, 3.0, 4.0])
    saturated = saturate(lab, 1.0)
    assert saturated[0] == 50.0
    assert np.hypot(saturated[1], saturated[2]) == pytest.approx(23.0)


def test_zero_intensity_returns_background_verbatim() -> None:
    color_for = create_color_scale("#fb7185", "slategray")

    assert color_for(0) == "slategray"


def test_palette_has_base_color_at_bucket_six() -> None:
    palette = build_palette("#fb7185", "#ebedf0")

    assert len(palette) == 10
    assert palette[0] == "#ebedf0"
    assert palette[6] == "#fb7185"
    assert all(re.fullmatch(r"#[0-9a-f]{6}", color) for color in palette[1:])


def test_low_buckets_darken_evenly_toward_base() -> None:
    palette = build_palette("#fb7185", "#ebedf0")

    lightness = [parse_lab(color)[0] for color in palette[1:7]]
    steps = np.diff(lightness)

    assert all(step < 0 for step in steps)
    assert max(steps) - min(steps) < 1.0


def test_top_buckets_differ_from_base() -> None:
    palette = build_palette("#fb7185", "#ebedf0")

    assert len(set(palette[6:])) == 4


def test_color_scale_is_deterministic() -> None:
    first = create_color_scale("#00ff00", "#000000")
    second = create_color_scale("#00ff00", "#000000")

    assert [first(i) for i in range(10)] == [second(i) for i in range(10)]


def test_with_opacity_hex_and_rgb_forms() -> None:
    assert with_opacity("#57606a") == "#57606aC0"
    assert with_opacity("#abc") == "#aabbccC0"
    assert with_opacity("#57606aff") == "#57606aC0"
    assert with_opacity("rgb(1, 2, 3)") == "rgba(1, 2, 3, 0.75)"
    assert with_opacity("white") == "rgba(255, 255, 255, 0.75)"


@pytest.mark.parametrize(
    ("color", "expected"),
    [
        ("rgb(251, 113, 133)", (251, 113, 133, 1.0)),
        ("rgb(251 113 133)", (251, 113, 133, 1.0)),
        ("RGBA(87, 96, 106, 0.5)", (87, 96, 106, 0.5)),
        ("rgb(100%, 0%, 50% / 25%)", (255, 0, 127.5, 0.25)),
        ("hsl(0, 100%, 50%)", (255, 0, 0, 1.0)),
        ("hsl(120deg 100% 25%)", (0, 127.5, 0, 1.0)),
        ("hsla(240, 100%, 50%, 0.3)", (0, 0, 255, 0.3)),
        ("#00ff0080", (0, 255, 0, 128 / 255)),
        ("white", (255, 255, 255, 1.0)),
    ],
)
def test_parse_rgba_accepts_css_notations(color: str, expected) -> None:
    red, green, blue, alpha = parse_rgba(color)

    assert [red * 255, green * 255, blue * 255] == pytest.approx(expected[:3], abs=0.01)
    assert alpha == pytest.approx(expected[3])


@pytest.mark.parametrize("color", ["rgb(1, 2)", "rgb(a, b, c)", "hsl(0, 100%)"])
def test_parse_rgba_rejects_malformed_css_functions(color: str) -> None:
    with pytest.raises(ValueError):
        parse_rgba(color)


def test_rgb_base_color_matches_hex_palette() -> None:
    from_hex = build_palette("#fb7185", "#ebedf0")
    from_rgb = build_palette("rgb(251, 113, 133)", "#ebedf0")

    assert from_rgb == from_hex


def test_rgb_background_is_kept_verbatim() -> None:
    palette = build_palette("#fb7185", "rgb(235, 237, 240)")

    assert palette[0] == "rgb(235, 237, 240)"
    assert palette[1:] == build_palette("#fb7185", "#ebedf0")[1:]


def test_with_opacity_replaces_css_alpha() -> None:
    assert with_opacity("rgba(87, 96, 106, 1)") == "rgba(87, 96, 106, 0.75)"
    assert with_opacity("hsl(0, 100%, 50%)") == "rgba(255, 0, 0, 0.75)"
    assert with_opacity("hsla(0, 100%, 50%, 0.2)") == "rgba(255, 0, 0, 0.75)"
