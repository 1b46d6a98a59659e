from dataclasses import dataclass

_CNN_REFERENCE = 'https://huggingface.co/spaces/onnx-community/image-detection-fire'
_MOBILENET_REFERENCE = 'https://huggingface.co/spaces/Xenova/MobileNetV2-Classification'


@dataclass(frozen=True)
class ModelOption:
    id: str
    name: str
    type: str
    reference_url: str


# Selection only labels the run; no option has its own inference path.
MODEL_OPTIONS: tuple[ModelOption, ...] = (
    ModelOption('cnn-uploaded', 'CNN (Uploaded Image)', 'uploaded', _CNN_REFERENCE),
    ModelOption('cnn-realtime', 'CNN (Real-time Detection)', 'realtime', _CNN_REFERENCE),
    ModelOption('mobilenet-uploaded', 'MobileNetV2 (Uploaded Image)', 'uploaded', _MOBILENET_REFERENCE),
    ModelOption('mobilenet-realtime', 'MobileNetV2 (Real-time Detection)', 'realtime', _MOBILENET_REFERENCE),
)


def get_model_option(model_id: str) -> ModelOption | None:
    normalized = (model_id or '').strip().lower()
    for option in MODEL_OPTIONS:
        if option.id == normalized:
            return option
    return None


def is_realtime_model(model_id: str) -> bool:
    return 'realtime' in (model_id or '')
