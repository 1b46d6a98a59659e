from abc import ABC, abstractmethod

from fire_detection_bot.config import Settings
from fire_detection_bot.core.types import DetectionResult, NotificationReceipt


class Notifier(ABC):
    @abstractmethod
    async def send_alert(self, phone_number: str, results: list[DetectionResult]) -> NotificationReceipt:
        raise NotImplementedError

    @property
    @abstractmethod
    def name(self) -> str:
        raise NotImplementedError


def create_notifier(settings: Settings) -> Notifier:
    notifier = settings.notifier.strip().lower()
    if notifier == 'sms_stub':
        from fire_detection_bot.providers.sms_stub_provider import StubSmsProvider

        return StubSmsProvider(delay_ms=settings.notifier_delay_ms)
    raise ValueError(f'Unsupported NOTIFIER={settings.notifier!r}')
