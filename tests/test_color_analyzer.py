import base64

import numpy as np
import pytest
from PIL import Image

from fire_detection_bot.core.color_analyzer import MAX_CONFIDENCE, analyze, analyze_pixels


def _pixels_with(fire_pixel, fire_count, total=100):
    pixels = np.zeros((total, 4), dtype=np.uint8)
    pixels[:, 3] = 255
    pixels[:fire_count] = fire_pixel
    return pixels


def test_no_fire_colored_pixels_gives_zero_confidence():
    for color in ((255, 255, 255, 255), (0, 0, 0, 255), (30, 120, 200, 255)):
        analysis = analyze_pixels(np.full((8, 8, 4), color, dtype=np.uint8))
        assert analysis.has_fire_colors is False
        assert analysis.confidence == 0


def test_all_deep_red_is_clamped():
    analysis = analyze_pixels(np.full((10, 10, 4), (255, 0, 0, 255), dtype=np.uint8))

    assert analysis.has_fire_colors is True
    assert analysis.confidence == pytest.approx(MAX_CONFIDENCE)
    assert analysis.confidence <= 0.98


def test_small_red_patch_scores_below_threshold():
    analysis = analyze_pixels(_pixels_with((255, 0, 0, 255), fire_count=1))

    # (0.01 * 1.5 + 0.01 * 0.8) * 8
    assert analysis.confidence == pytest.approx(0.184)
    assert analysis.has_fire_colors is False


def test_larger_red_patch_crosses_threshold():
    analysis = analyze_pixels(_pixels_with((255, 0, 0, 255), fire_count=5))

    assert analysis.has_fire_colors is True
    assert analysis.confidence == pytest.approx(0.92)


def test_pixel_counts_for_first_matching_bucket_only():
    # Matches both the orange and bright-center bands; orange wins.
    analysis = analyze_pixels(_pixels_with((230, 175, 100, 255), fire_count=1))

    assert analysis.confidence == pytest.approx((0.01 * 1.2 + 0.01 * 0.8) * 8)


def test_gradient_pixels_only_count_toward_total():
    analysis = analyze_pixels(_pixels_with((190, 100, 50, 255), fire_count=1))

    assert analysis.confidence == pytest.approx(0.01 * 0.8 * 8)
    assert analysis.has_fire_colors is False


def test_flat_rgba_bytes_use_stride_four():
    analysis = analyze_pixels(bytes([255, 0, 0, 255] * 16))

    assert analysis.has_fire_colors is True
    assert analysis.confidence == pytest.approx(MAX_CONFIDENCE)


def test_rgb_array_without_alpha_is_accepted():
    analysis = analyze_pixels(np.full((4, 4, 3), (255, 0, 0), dtype=np.uint8))

    assert analysis.has_fire_colors is True


def test_empty_buffer_is_zero():
    analysis = analyze_pixels(np.zeros((0, 4), dtype=np.uint8))

    assert analysis.has_fire_colors is False
    assert analysis.confidence == 0


def test_single_channel_arrays_are_not_read_as_rgb():
    # Every row of a grayscale frame looks like a deep-red pixel if columns are taken as channels.
    gray = np.tile(np.array([255, 0, 0, 0, 0, 0], dtype=np.uint8), (6, 1))

    analysis = analyze_pixels(gray)

    assert analysis.has_fire_colors is False
    assert analysis.confidence == 0


def test_confidence_stays_in_unit_interval_for_random_buffers():
    rng = np.random.default_rng(7)
    for _ in range(20):
        pixels = rng.integers(0, 256, size=(32, 32, 4), dtype=np.uint8)
        analysis = analyze_pixels(pixels)
        assert 0.0 <= analysis.confidence <= 1.0


def test_analyze_decodes_pil_images_and_data_urls(red_png):
    assert analyze(Image.new('RGB', (16, 16), color=(255, 0, 0))).has_fire_colors is True

    data_url = 'data:image/png;base64,' + base64.b64encode(red_png).decode('ascii')
    analysis = analyze(data_url)
    assert analysis.has_fire_colors is True
    assert analysis.confidence == pytest.approx(MAX_CONFIDENCE)


def test_analyze_reads_image_files(tmp_path, red_png):
    path = tmp_path / 'frame.png'
    path.write_bytes(red_png)

    assert analyze(str(path)).has_fire_colors is True


@pytest.mark.parametrize(
    'source',
    [
        b'not an image',
        'data:image/png;base64,!!!!',
        'data-without-comma',
        '/definitely/not/here.png',
        12345,
    ],
)
def test_undecodable_input_returns_zero_confidence(source):
    analysis = analyze(source)

    assert analysis.has_fire_colors is False
    assert analysis.confidence == 0.0


def test_images_over_the_pixel_limit_return_zero_confidence(oversized_png):
    analysis = analyze(oversized_png)

    assert analysis.has_fire_colors is False
    assert analysis.confidence == 0.0
