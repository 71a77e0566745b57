"""
Tests for the icon compositor.

Tests cover:
- Layout geometry and scale factors
- Single-path rendering at preview and export sizes
- Degenerate padding and border
- Shape clipping
- Tainted sources and pixel filters
"""

import numpy as np
import pytest
from PIL import Image

from IS_Libs.errors import CrossOriginError
from IS_Libs.ImageEditingLib.compositor import (
    build_border_mask,
    build_shape_mask,
    compute_layout,
    render_icon,
    render_placeholder,
)
from IS_Libs.ImageEditingLib.image_models import SourceImage
from IS_Libs.ImageEditingLib.transform_model import TextOverlay, TransformModel


def _premultiplied(image):
    pixels = np.asarray(image, dtype=np.float64)
    pixels[..., :3] *= pixels[..., 3:] / 255.0
    return pixels


class TestComputeLayout:
    """Tests for compute_layout function."""

    def test_defaults_at_mdpi(self, default_model):
        layout = compute_layout((200, 200), default_model, 48)

        assert layout.scale_factor == pytest.approx(48 / 512)
        assert layout.inset == 0
        assert layout.drawable_area == 48
        assert layout.center == (24, 24)
        assert layout.image_size == pytest.approx((18.75, 18.75))

    def test_offsets_and_padding_scale(self):
        model = TransformModel(x_offset=100, y_offset=-50, padding=32, border_width=8)
        layout = compute_layout((100, 100), model, 256)

        assert layout.inset == pytest.approx(20)
        assert layout.border_width == pytest.approx(4)
        assert layout.center == pytest.approx((178, 103))

    def test_user_scale_composes_with_area(self):
        model = TransformModel(scale=2.0, padding=128)
        layout = compute_layout((100, 50), model, 512)

        assert layout.drawable_area == 256
        assert layout.image_size == pytest.approx((100, 50))

    def test_degenerate(self):
        model = TransformModel(padding=256, border_width=256)
        layout = compute_layout((100, 100), model, 512)

        assert layout.degenerate
        assert layout.image_size == (0.0, 0.0)

    @pytest.mark.parametrize("target", [0, -48])
    def test_rejects_non_positive_target(self, default_model, target):
        with pytest.raises(ValueError):
            compute_layout((10, 10), default_model, target)


class TestRenderIcon:
    """Tests for render_icon function."""

    def test_small_red_square_at_mdpi(self, red_source, default_model):
        icon = render_icon(red_source, default_model, 48)

        assert icon.size == (48, 48)
        assert icon.mode == "RGBA"
        assert icon.getpixel((24, 24)) == (255, 0, 0, 255)
        assert icon.getpixel((12, 24)) == (255, 255, 255, 255)
        for corner in [(0, 0), (47, 0), (0, 47), (47, 47)]:
            assert icon.getpixel(corner) == (255, 255, 255, 255)

    @pytest.mark.parametrize(
        "model",
        [
            TransformModel(rotation=30, padding=20, border_width=8, border_color=(0, 0, 80)),
            TransformModel(x_offset=100, y_offset=-60, scale=0.7, icon_shape="circle", padding=10),
            TransformModel(scale=1.5, rotation=-15, icon_shape="rounded-square", border_width=12),
            TransformModel(text=TextOverlay(content="A", font_size=96, font_color=(0, 0, 0), y_offset=120)),
            TransformModel(filter_kind="blur", blur_radius=6, padding=30),
        ],
        ids=["rotated-border", "offset-circle", "scaled-rounded", "text", "blur"],
    )
    def test_export_matches_downsampled_preview(self, red_source, model):
        preview = render_icon(red_source, model, 512)
        downsampled = preview.resize((96, 96), Image.Resampling.BOX)
        direct = render_icon(red_source, model, 96)

        # Clipped pixels keep their RGB under zero alpha, so compare premultiplied
        diff = np.abs(_premultiplied(downsampled) - _premultiplied(direct))
        assert diff.mean() < 6

    def test_large_source_is_fit_to_canvas(self, large_source):
        model = TransformModel.defaults_for(large_source.size)
        icon = render_icon(large_source, model, 512)

        # 1024x512 at scale 0.5 spans the full width
        assert icon.getpixel((10, 256))[:3] == (0, 128, 255)
        assert icon.getpixel((256, 100))[:3] == (255, 255, 255)

    def test_rotation_keeps_canvas_size(self, red_source):
        icon = render_icon(red_source, TransformModel(rotation=45), 100)
        assert icon.size == (100, 100)

    def test_degenerate_padding_does_not_raise(self, red_source):
        model = TransformModel(padding=256, border_width=256, border_color=(0, 0, 255))
        icon = render_icon(red_source, model, 48)

        assert icon.size == (48, 48)
        # Only background and border remain
        colors = {pixel[:3] for pixel in icon.getdata()}
        assert (255, 0, 0) not in colors

    def test_border_is_drawn_inside_canvas(self, red_source):
        model = TransformModel(border_width=16, border_color=(0, 0, 255))
        icon = render_icon(red_source, model, 64)

        assert icon.getpixel((0, 32)) == (0, 0, 255, 255)
        assert icon.getpixel((32, 32))[:3] == (255, 0, 0)

    def test_background_colour(self, red_source):
        icon = render_icon(red_source, TransformModel(background_color=(0, 255, 0)), 48)
        assert icon.getpixel((1, 1)) == (0, 255, 0, 255)

    def test_filter_applies(self, red_source):
        icon = render_icon(red_source, TransformModel(filter_kind="invert"), 48)

        assert icon.getpixel((24, 24)) == (0, 255, 255, 255)
        assert icon.getpixel((1, 1)) == (0, 0, 0, 255)

    def test_tainted_source_with_filter_raises(self):
        source = SourceImage.from_image(Image.new("RGBA", (50, 50), "red"), origin="https://cdn.test/a.png", tainted=True)

        with pytest.raises(CrossOriginError):
            render_icon(source, TransformModel(filter_kind="grayscale"), 48)

    def test_tainted_source_without_filter_draws(self):
        source = SourceImage.from_image(Image.new("RGBA", (50, 50), "red"), origin="https://cdn.test/a.png", tainted=True)
        icon = render_icon(source, TransformModel(), 48)
        assert icon.size == (48, 48)

    def test_unknown_shape(self, red_source):
        with pytest.raises(ValueError):
            render_icon(red_source, TransformModel(icon_shape="hexagon"), 48)

    def test_text_overlay_is_drawn(self, red_source):
        plain = render_icon(red_source, TransformModel(), 128)
        with_text = render_icon(
            red_source,
            TransformModel().replace(text_content="AB", text_font_size=200, text_font_color="#000000"),
            128,
        )
        assert list(plain.getdata()) != list(with_text.getdata())


class TestShapes:
    """Tests for shape and border masks."""

    @pytest.mark.parametrize("shape", ["circle", "rounded-square"])
    def test_corners_are_transparent(self, red_source, shape):
        icon = render_icon(red_source, TransformModel(icon_shape=shape), 96)

        assert icon.getpixel((0, 0))[3] == 0
        assert icon.getpixel((95, 95))[3] == 0
        assert icon.getpixel((48, 48))[3] == 255

    def test_no_shape_has_no_mask(self):
        assert build_shape_mask("none", 48) is None

    def test_circle_mask_is_antialiased(self):
        mask = build_shape_mask("circle", 64)
        values = set(mask.getdata())

        assert mask.mode == "L"
        assert 0 in values and 255 in values
        assert any(0 < value < 255 for value in values)

    def test_unknown_shape_mask(self):
        with pytest.raises(ValueError):
            build_shape_mask("star", 48)

    def test_thin_border_mask_is_visible(self):
        mask = build_border_mask("none", 48, 0.5)
        assert mask.getpixel((0, 24)) > 0
        assert mask.getpixel((24, 24)) == 0


class TestPlaceholder:
    """Tests for the no-image placeholder."""

    def test_placeholder_is_deterministic(self):
        first = render_placeholder()
        second = render_icon(None, TransformModel(), 512)

        assert first.size == (512, 512)
        assert list(first.getdata()) == list(second.getdata())

    def test_placeholder_draws_text(self):
        placeholder = render_placeholder(target_size=128)
        colors = {pixel[:3] for pixel in placeholder.getdata()}
        assert len(colors) > 1
