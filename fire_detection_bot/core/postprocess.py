from fire_detection_bot.core.types import DetectionResult

HAZARD_KEYWORDS = ('fire', 'smoke', 'flame', 'hazard')
NEGATIVE_PREFIXES = ('no ', 'not ')
HAZARD_DISPLAY_THRESHOLD = 0.45
HIGH_SEVERITY_THRESHOLD = 0.65
CLEAR_SCENE_THRESHOLD = 0.7


def is_negative_label(label: str) -> bool:
    """'No fire detected' names fire but reports its absence."""
    normalized = (label or '').strip().lower()
    return normalized.startswith(NEGATIVE_PREFIXES)


def is_hazard_label(label: str) -> bool:
    normalized = (label or '').strip().lower()
    if is_negative_label(normalized):
        return False
    return any(keyword in normalized for keyword in HAZARD_KEYWORDS)


def severity(result: DetectionResult) -> str:
    if is_hazard_label(result.label):
        if result.confidence > HIGH_SEVERITY_THRESHOLD:
            return 'high'
        if result.confidence > HAZARD_DISPLAY_THRESHOLD:
            return 'medium'
        return 'low'
    return 'clear' if result.confidence > CLEAR_SCENE_THRESHOLD else 'uncertain'


def top_hazard(results: list[DetectionResult]) -> DetectionResult | None:
    best: DetectionResult | None = None
    for result in results:
        if not is_hazard_label(result.label):
            continue
        if best is None or result.confidence > best.confidence:
            best = result
    return best


def summarize(results: list[DetectionResult]) -> dict:
    hazard_detected = any(
        is_hazard_label(result.label) and result.confidence > HAZARD_DISPLAY_THRESHOLD for result in results
    )
    best = top_hazard(results)
    return {
        'hazard_detected': hazard_detected,
        'top_label': best.label if best else None,
        'top_confidence': round(best.confidence, 4) if best else None,
        'severity': severity(best) if best else None,
    }
