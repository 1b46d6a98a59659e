import logging

import numpy as np

from fire_detection_bot.core.types import ColorAnalysis
from fire_detection_bot.utils.image_io import read_image_source

logger = logging.getLogger(__name__)

RED_WEIGHT = 1.5
ORANGE_WEIGHT = 1.2
BRIGHT_WEIGHT = 1.8
FIRE_WEIGHT = 0.8
CONFIDENCE_SCALE = 8.0
MAX_CONFIDENCE = 0.98
FIRE_THRESHOLD = 0.04


def _as_pixel_rows(buffer) -> np.ndarray:
    if isinstance(buffer, (bytes, bytearray, memoryview)):
        pixels = np.frombuffer(buffer, dtype=np.uint8)
    else:
        pixels = np.asarray(buffer, dtype=np.uint8)
    if pixels.ndim <= 1:
        # Flat RGBA buffer, stride 4; a trailing partial pixel is ignored.
        usable = pixels.size - pixels.size % 4
        return pixels[:usable].reshape(-1, 4)
    if pixels.shape[-1] not in (3, 4):
        logger.debug('Ignoring pixel buffer without RGB channels shape=%s', pixels.shape)
        return np.empty((0, 4), dtype=np.uint8)
    return pixels.reshape(-1, pixels.shape[-1])


def analyze_pixels(buffer) -> ColorAnalysis:
    rows = _as_pixel_rows(buffer)
    total = rows.shape[0]
    if total == 0:
        return ColorAnalysis(has_fire_colors=False, confidence=0.0)

    r = rows[:, 0].astype(np.int16)
    g = rows[:, 1].astype(np.int16)
    b = rows[:, 2].astype(np.int16)

    # Buckets are checked in order; a pixel only counts for the first one it matches.
    red = (r > 200) & (g < 100) & (b < 100)
    unmatched = ~red
    orange = unmatched & (r > 200) & (g > 120) & (g < 180) & (b < 120)
    unmatched &= ~orange
    bright = unmatched & (r > 220) & (g > 170) & (g < 220) & (b < 150)
    unmatched &= ~bright
    gradient = unmatched & (r > 180) & (g > 90) & (g < 140) & (b < 90)

    red_count = int(np.count_nonzero(red))
    orange_count = int(np.count_nonzero(orange))
    bright_count = int(np.count_nonzero(bright))
    gradient_count = int(np.count_nonzero(gradient))
    fire_count = red_count + orange_count + bright_count + gradient_count

    red_pct = red_count / total
    orange_pct = orange_count / total
    bright_pct = bright_count / total
    fire_pct = fire_count / total

    weighted = red_pct * RED_WEIGHT + orange_pct * ORANGE_WEIGHT + bright_pct * BRIGHT_WEIGHT + fire_pct * FIRE_WEIGHT
    confidence = max(0.0, min(weighted * CONFIDENCE_SCALE, MAX_CONFIDENCE))

    logger.debug(
        'Fire color stats pixels=%s red=%.4f orange=%.4f bright=%.4f gradient=%s fire=%.4f weighted=%.4f confidence=%.4f',
        total,
        red_pct,
        orange_pct,
        bright_pct,
        gradient_count,
        fire_pct,
        weighted,
        confidence,
    )
    return ColorAnalysis(has_fire_colors=weighted > FIRE_THRESHOLD, confidence=confidence)


def analyze(image) -> ColorAnalysis:
    if isinstance(image, np.ndarray):
        return analyze_pixels(image)
    decoded = read_image_source(image)
    if decoded is None:
        return ColorAnalysis(has_fire_colors=False, confidence=0.0)
    try:
        rgba = decoded.convert('RGBA')
    except (OSError, ValueError) as exc:
        logger.warning('Could not convert image to RGBA: %s', exc)
        return ColorAnalysis(has_fire_colors=False, confidence=0.0)
    return analyze_pixels(np.asarray(rgba, dtype=np.uint8))
