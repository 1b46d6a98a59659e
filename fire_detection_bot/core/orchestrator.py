import asyncio
import logging
import random

from fire_detection_bot.config import Settings
from fire_detection_bot.core.color_analyzer import analyze
from fire_detection_bot.core.demo_shortcut import canned_fire_results, matches_demo_asset
from fire_detection_bot.core.types import ColorAnalysis, DetectionReport, DetectionResult
from fire_detection_bot.utils.image_io import to_data_url
from fire_detection_bot.utils.timings import measure_ms

logger = logging.getLogger(__name__)

STRATEGY_METADATA_SHORTCUT = 'metadata_shortcut'
STRATEGY_COLOR_HEURISTIC = 'color_heuristic'
STRATEGY_SIMULATED_FALSE_POSITIVE = 'simulated_false_positive'
STRATEGY_NORMAL_SCENE = 'normal_scene'

_NORMAL_SCENE = (
    ('No fire detected', 0.95),
    ('Normal scene', 0.97),
)


def results_from_colors(analysis: ColorAnalysis) -> list[DetectionResult]:
    fire = analysis.confidence
    return [
        DetectionResult(label='Fire', confidence=fire),
        DetectionResult(label='Smoke', confidence=max(0.3, fire * 0.85)),
        DetectionResult(label='Potential Hazard', confidence=min(fire + 0.1, 0.95)),
    ]


def normal_scene_results() -> list[DetectionResult]:
    return [DetectionResult(label=label, confidence=confidence) for label, confidence in _NORMAL_SCENE]


class DetectionOrchestrator:
    def __init__(
        self,
        inference_delay_ms: int = 1500,
        metadata_shortcut_enabled: bool = True,
        false_positive_rate: float = 0.15,
        rng: random.Random | None = None,
    ) -> None:
        self._delay = max(int(inference_delay_ms), 0) / 1000.0
        self._shortcut_enabled = metadata_shortcut_enabled
        self._false_positive_rate = float(false_positive_rate)
        self._rng = rng or random.Random()

    @property
    def metadata_shortcut_enabled(self) -> bool:
        return self._shortcut_enabled

    async def detect(self, image: bytes | str, model_id: str) -> list[DetectionResult]:
        report = await self.run(image, model_id)
        return report.results

    async def run(self, image: bytes | str, model_id: str) -> DetectionReport:
        with measure_ms() as elapsed_ms:
            if self._delay:
                # Stands in for a remote inference round trip.
                await asyncio.sleep(self._delay)
            strategy, results = self._classify(image, model_id or '')
        logger.info(
            'Detection finished model=%s strategy=%s labels=%s',
            model_id,
            strategy,
            [row.label for row in results],
        )
        return DetectionReport(results=results, model_id=model_id, strategy=strategy, latency_ms=elapsed_ms())

    def _classify(self, image: bytes | str, model_id: str) -> tuple[str, list[DetectionResult]]:
        if self._shortcut_enabled and matches_demo_asset(self._encode(image)):
            logger.info('Fire detected in image based on metadata')
            return STRATEGY_METADATA_SHORTCUT, canned_fire_results()

        analysis = analyze(image)
        logger.debug('Color analysis has_fire_colors=%s confidence=%.4f', analysis.has_fire_colors, analysis.confidence)
        if analysis.has_fire_colors:
            return STRATEGY_COLOR_HEURISTIC, results_from_colors(analysis)

        # Model choice is cosmetic; only 'cnn' ids get the simulated false positives.
        if 'cnn' in model_id:
            draw = self._rng.random()
            if draw < self._false_positive_rate:
                return STRATEGY_SIMULATED_FALSE_POSITIVE, [
                    DetectionResult(label='Fire', confidence=0.4 + draw * 0.3),
                    DetectionResult(label='Smoke', confidence=0.3 + draw * 0.3),
                ]

        return STRATEGY_NORMAL_SCENE, normal_scene_results()

    @staticmethod
    def _encode(image: bytes | str) -> str:
        if isinstance(image, str):
            return image
        if isinstance(image, (bytes, bytearray)):
            return to_data_url(bytes(image))
        return ''


def create_orchestrator(settings: Settings) -> DetectionOrchestrator:
    rng = random.Random(settings.random_seed) if settings.random_seed is not None else None
    return DetectionOrchestrator(
        inference_delay_ms=settings.inference_delay_ms,
        metadata_shortcut_enabled=settings.metadata_shortcut_enabled,
        false_positive_rate=settings.false_positive_rate,
        rng=rng,
    )
