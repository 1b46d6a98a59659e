from fire_detection_bot.core.types import DetectionResult

# Demo assets are recognised by name; this is not a detector.
_CANNED_FIRE = (
    ('Fire', 0.89),
    ('Smoke', 0.76),
    ('Flames', 0.82),
)


def matches_demo_asset(encoded_image: str) -> bool:
    return 'fire' in encoded_image or 'flame' in encoded_image or 'burn' in encoded_image.lower()


def canned_fire_results() -> list[DetectionResult]:
    return [DetectionResult(label=label, confidence=confidence) for label, confidence in _CANNED_FIRE]
