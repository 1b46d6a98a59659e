import binascii
import logging
import time
import uuid

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse

from fire_detection_bot.config import get_settings
from fire_detection_bot.core.alerts import AlertDispatcher, build_alert_config
from fire_detection_bot.core.errors import AppError
from fire_detection_bot.core.models import MODEL_OPTIONS, get_model_option, is_realtime_model
from fire_detection_bot.core.notifier import create_notifier
from fire_detection_bot.core.orchestrator import create_orchestrator
from fire_detection_bot.core.postprocess import severity, summarize
from fire_detection_bot.core.realtime import (
    CycleOutcome,
    DetectionCycle,
    DirectoryFrameSource,
    RealtimeSession,
    create_capture_loop,
)
from fire_detection_bot.core.types import AlertConfig, DetectionResult
from fire_detection_bot.logging_setup import setup_logging
from fire_detection_bot.schemas import (
    AlertOut,
    AlertSettingsRequest,
    AlertSettingsResponse,
    DetectResponse,
    ErrorResponse,
    HealthResponse,
    ModelsResponse,
    RealtimeFrameResponse,
)
from fire_detection_bot.utils.image_io import decode_data_url, is_data_url, validate_upload

settings = get_settings()
setup_logging(settings.log_level)
logger = logging.getLogger('fire_detection_bot')

app = FastAPI(title='Fire & Smoke Detection Bot', version=settings.version)
started_at = time.time()


@app.on_event('startup')
def startup_event() -> None:
    orchestrator = create_orchestrator(settings)
    notifier = create_notifier(settings)
    dispatcher = AlertDispatcher(notifier)
    app.state.orchestrator = orchestrator
    app.state.notifier = notifier
    app.state.alert_config = AlertConfig(
        phone_number=settings.alert_phone_number.strip(),
        threshold=settings.alert_threshold,
    )
    app.state.cycle = DetectionCycle(orchestrator, dispatcher, lambda: app.state.alert_config)
    app.state.realtime_session = RealtimeSession(app.state.cycle)
    app.state.capture_loop = None
    logger.info(
        'Detector initialized model=%s shortcut=%s inference_delay_ms=%s notifier=%s alert_contact=%s',
        settings.model_id,
        settings.metadata_shortcut_enabled,
        settings.inference_delay_ms,
        notifier.name,
        app.state.alert_config.has_contact,
    )


@app.on_event('startup')
async def start_capture_loop() -> None:
    if not settings.capture_directory:
        return
    loop = create_capture_loop(
        settings,
        app.state.realtime_session,
        DirectoryFrameSource(settings.capture_directory),
        on_outcome=_log_capture_outcome,
    )
    loop.start()
    app.state.capture_loop = loop
    logger.info(
        'Capture loop started directory=%s interval_ms=%s model=%s',
        settings.capture_directory,
        loop.interval_ms,
        settings.realtime_model_id,
    )


@app.on_event('shutdown')
async def stop_capture_loop() -> None:
    loop = getattr(app.state, 'capture_loop', None)
    if loop is not None:
        await loop.stop()
        app.state.capture_loop = None


def _log_capture_outcome(outcome: CycleOutcome) -> None:
    logger.info(
        'capture frame strategy=%s alert_triggered=%s alert_sent=%s',
        outcome.report.strategy,
        outcome.alert.triggered,
        outcome.alert.sent,
    )


def _request_id(request: Request) -> str:
    return request.headers.get('x-request-id') or str(uuid.uuid4())


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    payload = ErrorResponse(
        error=exc.code,
        message=exc.message,
        request_id=_request_id(request),
        details=exc.details or None,
    )
    return JSONResponse(status_code=exc.status_code, content=payload.model_dump())


@app.exception_handler(Exception)
async def generic_error_handler(request: Request, exc: Exception):
    request_id = _request_id(request)
    logger.exception('Unhandled exception request_id=%s', request_id)
    payload = ErrorResponse(
        error='UNEXPECTED_SERVER_ERROR',
        message='An error occurred while analyzing the image',
        request_id=request_id,
    )
    return JSONResponse(status_code=500, content=payload.model_dump())


def _resolve_model(model_id: str | None, default: str, realtime: bool = False) -> str:
    candidate = (model_id or '').strip() or default
    option = get_model_option(candidate)
    if option is None:
        raise AppError(
            'UNSUPPORTED_MODEL',
            f'Unknown model {candidate!r}.',
            status_code=400,
            details={'models': [row.id for row in MODEL_OPTIONS]},
        )
    if realtime and not is_realtime_model(option.id):
        raise AppError(
            'UNSUPPORTED_MODEL',
            f'Model {option.id!r} does not run on live frames.',
            status_code=400,
            details={'models': [row.id for row in MODEL_OPTIONS if is_realtime_model(row.id)]},
        )
    return option.id


async def _read_frame(image: UploadFile | None, data_url: str | None) -> bytes | str:
    if image is not None:
        image_bytes = await image.read()
        return validate_upload(image_bytes, settings.max_image_bytes, image.content_type)
    if data_url:
        if not is_data_url(data_url):
            raise AppError('INVALID_DATA_URL', 'data_url must be a data: URL.', status_code=400)
        try:
            decoded = decode_data_url(data_url)
        except (ValueError, binascii.Error) as exc:
            raise AppError('INVALID_DATA_URL', 'Could not decode data_url.', status_code=400) from exc
        mime_type = data_url[len('data:'):].split(';', 1)[0].split(',', 1)[0]
        validate_upload(decoded, settings.max_image_bytes, mime_type or None)
        # The encoded string itself is what the demo-asset check looks at.
        return data_url
    raise AppError('MISSING_IMAGE', 'Missing image (field name: image or data_url).', status_code=400)


def _detection_rows(results: list[DetectionResult]) -> list[dict]:
    return [
        {
            'label': row.label,
            'confidence': row.confidence,
            'bbox': (
                {'x': row.bbox.x, 'y': row.bbox.y, 'width': row.bbox.width, 'height': row.bbox.height}
                if row.bbox
                else None
            ),
            'severity': severity(row),
        }
        for row in results
    ]


def _alert_out(outcome: CycleOutcome) -> AlertOut:
    return AlertOut(triggered=outcome.alert.triggered, sent=outcome.alert.sent, message=outcome.alert.message)


@app.get('/health', response_model=HealthResponse)
def health():
    return HealthResponse(
        ok=True,
        version=settings.version,
        model=settings.model_id,
        notifier=app.state.notifier.name,
        metadata_shortcut_enabled=app.state.orchestrator.metadata_shortcut_enabled,
        inference_delay_ms=settings.inference_delay_ms,
        uptime_s=round(time.time() - started_at, 3),
    )


@app.get('/models', response_model=ModelsResponse)
def models():
    return ModelsResponse(
        ok=True,
        default_model=settings.model_id,
        models=[
            {'id': row.id, 'name': row.name, 'type': row.type, 'reference_url': row.reference_url}
            for row in MODEL_OPTIONS
        ],
    )


@app.get('/alert-settings', response_model=AlertSettingsResponse)
def get_alert_settings():
    config: AlertConfig = app.state.alert_config
    return AlertSettingsResponse(
        ok=True,
        phone_number=config.phone_number,
        threshold=config.threshold,
        threshold_percent=round(config.threshold * 100),
    )


@app.put('/alert-settings', response_model=AlertSettingsResponse)
def save_alert_settings(payload: AlertSettingsRequest):
    config = build_alert_config(
        payload.phone_number,
        payload.threshold_percent,
        min_phone_length=settings.alert_phone_min_length,
    )
    app.state.alert_config = config
    logger.info('Alert settings saved threshold=%.2f', config.threshold)
    return AlertSettingsResponse(
        ok=True,
        phone_number=config.phone_number,
        threshold=config.threshold,
        threshold_percent=payload.threshold_percent,
    )


@app.post('/detect', response_model=DetectResponse)
async def detect(
    request: Request,
    image: UploadFile | None = File(default=None),
    data_url: str | None = Form(default=None),
    model_id: str | None = Form(default=None),
):
    request_id = _request_id(request)
    model = _resolve_model(model_id, settings.model_id)
    frame = await _read_frame(image, data_url)

    cycle: DetectionCycle = app.state.cycle
    outcome = await cycle.run(frame, model)
    report = outcome.report

    logger.info(
        'detect request_id=%s model=%s strategy=%s results=%s alert_triggered=%s alert_sent=%s latency_ms=%s',
        request_id,
        model,
        report.strategy,
        len(report.results),
        outcome.alert.triggered,
        outcome.alert.sent,
        report.latency_ms,
    )
    return DetectResponse(
        ok=True,
        model=model,
        strategy=report.strategy,
        latency_ms=report.latency_ms,
        results=_detection_rows(report.results),
        summary=summarize(report.results),
        alert=_alert_out(outcome),
    )


@app.post('/realtime/frames', response_model=RealtimeFrameResponse)
async def realtime_frame(
    request: Request,
    image: UploadFile | None = File(default=None),
    data_url: str | None = Form(default=None),
    model_id: str | None = Form(default=None),
):
    request_id = _request_id(request)
    model = _resolve_model(model_id, settings.realtime_model_id, realtime=True)
    frame = await _read_frame(image, data_url)

    session: RealtimeSession = app.state.realtime_session
    outcome = await session.submit(frame, model)
    if outcome is None:
        logger.debug('realtime frame skipped request_id=%s skipped=%s', request_id, session.skipped_count)
        return RealtimeFrameResponse(
            ok=True,
            skipped=True,
            model=model,
            completed_cycles=session.completed_count,
            skipped_frames=session.skipped_count,
        )

    report = outcome.report
    logger.info(
        'realtime frame request_id=%s model=%s strategy=%s alert_triggered=%s',
        request_id,
        model,
        report.strategy,
        outcome.alert.triggered,
    )
    return RealtimeFrameResponse(
        ok=True,
        skipped=False,
        model=model,
        strategy=report.strategy,
        latency_ms=report.latency_ms,
        results=_detection_rows(report.results),
        summary=summarize(report.results),
        alert=_alert_out(outcome),
        completed_cycles=session.completed_count,
        skipped_frames=session.skipped_count,
    )


def run() -> None:
    import uvicorn

    uvicorn.run('fire_detection_bot.main:app', host=settings.host, port=settings.port, reload=False)


if __name__ == '__main__':
    run()
