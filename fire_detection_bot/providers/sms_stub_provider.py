import asyncio
from collections import deque
import logging

from fire_detection_bot.core.notifier import Notifier
from fire_detection_bot.core.types import DetectionResult, NotificationReceipt

logger = logging.getLogger(__name__)


class StubSmsProvider(Notifier):
    """Pretends to deliver an SMS; no message ever leaves the process."""

    def __init__(self, delay_ms: int = 1500) -> None:
        self._delay = max(int(delay_ms), 0) / 1000.0
        self.sent: deque[tuple[str, list[DetectionResult]]] = deque(maxlen=100)

    @property
    def name(self) -> str:
        return 'sms-stub'

    async def send_alert(self, phone_number: str, results: list[DetectionResult]) -> NotificationReceipt:
        logger.info(
            'Would send SMS alert phone=%s results=%s',
            phone_number,
            [(row.label, round(row.confidence, 4)) for row in results],
        )
        if self._delay:
            await asyncio.sleep(self._delay)
        self.sent.append((phone_number, list(results)))
        return NotificationReceipt(success=True, message=f'Alert sent to {phone_number}')
