from pydantic import BaseModel, Field


class BoundingBoxOut(BaseModel):
    x: float
    y: float
    width: float
    height: float


class DetectionOut(BaseModel):
    label: str
    confidence: float = Field(ge=0.0, le=1.0)
    bbox: BoundingBoxOut | None = None
    severity: str | None = None


class SummaryOut(BaseModel):
    hazard_detected: bool
    top_label: str | None = None
    top_confidence: float | None = None
    severity: str | None = None


class AlertOut(BaseModel):
    triggered: bool
    sent: bool = False
    message: str | None = None


class DetectResponse(BaseModel):
    ok: bool = True
    model: str
    strategy: str
    latency_ms: int
    results: list[DetectionOut]
    summary: SummaryOut
    alert: AlertOut


class RealtimeFrameResponse(BaseModel):
    ok: bool = True
    skipped: bool = False
    model: str
    strategy: str | None = None
    latency_ms: int | None = None
    results: list[DetectionOut] = []
    summary: SummaryOut | None = None
    alert: AlertOut | None = None
    completed_cycles: int = 0
    skipped_frames: int = 0


class ModelOptionOut(BaseModel):
    id: str
    name: str
    type: str
    reference_url: str


class ModelsResponse(BaseModel):
    ok: bool = True
    default_model: str
    models: list[ModelOptionOut]


class AlertSettingsRequest(BaseModel):
    phone_number: str
    threshold_percent: int = 70


class AlertSettingsResponse(BaseModel):
    ok: bool = True
    phone_number: str
    threshold: float = Field(gt=0.0, le=1.0)
    threshold_percent: int


class HealthResponse(BaseModel):
    ok: bool
    version: str
    model: str
    notifier: str
    metadata_shortcut_enabled: bool
    inference_delay_ms: int
    uptime_s: float


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str
    message: str
    request_id: str | None = None
    details: dict | None = None
