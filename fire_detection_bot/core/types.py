from dataclasses import dataclass, field


@dataclass
class BoundingBox:
    x: float
    y: float
    width: float
    height: float


@dataclass
class DetectionResult:
    label: str
    confidence: float
    bbox: BoundingBox | None = None


@dataclass
class ColorAnalysis:
    has_fire_colors: bool
    confidence: float


@dataclass
class DetectionReport:
    results: list[DetectionResult]
    model_id: str
    strategy: str
    latency_ms: int


@dataclass
class AlertConfig:
    phone_number: str = ''
    threshold: float = 0.7

    def __post_init__(self) -> None:
        if not 0.0 < self.threshold <= 1.0:
            raise ValueError(f'threshold must be in (0, 1], got {self.threshold!r}')

    @property
    def has_contact(self) -> bool:
        return bool(self.phone_number.strip())


@dataclass
class NotificationReceipt:
    success: bool
    message: str


@dataclass
class AlertOutcome:
    triggered: bool
    sent: bool = False
    message: str | None = None
    trigger: DetectionResult | None = field(default=None, repr=False)
