import os
from io import BytesIO

import pytest
from PIL import Image

# Must be set before fire_detection_bot.main reads its settings.
os.environ.setdefault('INFERENCE_DELAY_MS', '0')
os.environ.setdefault('NOTIFIER_DELAY_MS', '0')
os.environ.setdefault('ALERT_PHONE_NUMBER', '')


def make_image_bytes(color, size=(64, 48), fmt='PNG', mode='RGB') -> bytes:
    image = Image.new(mode, size, color=color)
    buf = BytesIO()
    image.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def white_png() -> bytes:
    return make_image_bytes('white')


@pytest.fixture
def red_png() -> bytes:
    return make_image_bytes((255, 0, 0))


@pytest.fixture
def oversized_png(monkeypatch) -> bytes:
    # Pillow refuses to open anything over twice its pixel limit.
    monkeypatch.setattr(Image, 'MAX_IMAGE_PIXELS', 10_000)
    return make_image_bytes(1, size=(300, 200), fmt='PNG', mode='1')
