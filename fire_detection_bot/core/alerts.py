import logging

from fire_detection_bot.core.errors import AppError
from fire_detection_bot.core.notifier import Notifier
from fire_detection_bot.core.postprocess import is_negative_label
from fire_detection_bot.core.types import AlertConfig, AlertOutcome, DetectionResult

logger = logging.getLogger(__name__)

ALERT_LABEL_KEYWORDS = ('fire', 'smoke')
ALERT_FAILED_MESSAGE = 'Could not send the emergency alert'


def build_alert_config(phone_number: str, threshold_percent: int, min_phone_length: int = 10) -> AlertConfig:
    phone = (phone_number or '').strip()
    if len(phone) < min_phone_length:
        raise AppError(
            'INVALID_PHONE_NUMBER',
            'Please enter a valid phone number',
            status_code=422,
            details={'min_length': min_phone_length},
        )
    if isinstance(threshold_percent, bool) or not isinstance(threshold_percent, int) or not 1 <= threshold_percent <= 100:
        raise AppError('INVALID_THRESHOLD', 'Threshold must be between 1 and 100', status_code=422)
    return AlertConfig(phone_number=phone, threshold=threshold_percent / 100)


def find_alert_trigger(results: list[DetectionResult], threshold: float) -> DetectionResult | None:
    for result in results:
        label = result.label.lower()
        # "No fire detected" names the keyword but reports its absence.
        if is_negative_label(label):
            continue
        if any(keyword in label for keyword in ALERT_LABEL_KEYWORDS) and result.confidence >= threshold:
            return result
    return None


def should_alert(results: list[DetectionResult], contact: AlertConfig) -> bool:
    return contact.has_contact and find_alert_trigger(results, contact.threshold) is not None


class AlertDispatcher:
    def __init__(self, notifier: Notifier) -> None:
        self._notifier = notifier

    @property
    def notifier(self) -> Notifier:
        return self._notifier

    async def maybe_alert(self, results: list[DetectionResult], contact: AlertConfig) -> AlertOutcome:
        if not contact.has_contact:
            return AlertOutcome(triggered=False)
        trigger = find_alert_trigger(results, contact.threshold)
        if trigger is None:
            return AlertOutcome(triggered=False)

        logger.info(
            'Alert triggered label=%s confidence=%.4f threshold=%.2f notifier=%s',
            trigger.label,
            trigger.confidence,
            contact.threshold,
            self._notifier.name,
        )
        try:
            receipt = await self._notifier.send_alert(contact.phone_number, results)
        except Exception:
            logger.exception('Failed to send alert notifier=%s', self._notifier.name)
            return AlertOutcome(triggered=True, sent=False, message=ALERT_FAILED_MESSAGE, trigger=trigger)

        if not receipt.success:
            logger.warning('Alert rejected notifier=%s message=%s', self._notifier.name, receipt.message)
            return AlertOutcome(triggered=True, sent=False, message=receipt.message or ALERT_FAILED_MESSAGE, trigger=trigger)
        return AlertOutcome(triggered=True, sent=True, message=receipt.message, trigger=trigger)


async def maybe_alert(results: list[DetectionResult], contact: AlertConfig, notifier: Notifier) -> AlertOutcome:
    return await AlertDispatcher(notifier).maybe_alert(results, contact)
