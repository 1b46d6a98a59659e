from fire_detection_bot.core.models import MODEL_OPTIONS, get_model_option, is_realtime_model
from fire_detection_bot.core.postprocess import severity, summarize, top_hazard
from fire_detection_bot.core.types import DetectionResult


def test_summary_for_normal_scene():
    summary = summarize([DetectionResult('No fire detected', 0.95), DetectionResult('Normal scene', 0.97)])

    assert summary['hazard_detected'] is False
    assert summary['top_label'] is None
    assert severity(DetectionResult('No fire detected', 0.95)) == 'clear'


def test_summary_picks_highest_hazard():
    results = [DetectionResult('Fire', 0.43), DetectionResult('Smoke', 0.33), DetectionResult('Normal scene', 0.97)]

    assert top_hazard(results).label == 'Fire'
    assert summarize(results) == {
        'hazard_detected': False,
        'top_label': 'Fire',
        'top_confidence': 0.43,
        'severity': 'low',
    }


def test_summary_without_hazard_labels():
    assert summarize([DetectionResult('Normal scene', 0.97)]) == {
        'hazard_detected': False,
        'top_label': None,
        'top_confidence': None,
        'severity': None,
    }


def test_severity_bands():
    assert severity(DetectionResult('Fire', 0.9)) == 'high'
    assert severity(DetectionResult('Potential Hazard', 0.5)) == 'medium'
    assert severity(DetectionResult('Smoke', 0.3)) == 'low'
    assert severity(DetectionResult('Normal scene', 0.97)) == 'clear'
    assert severity(DetectionResult('Normal scene', 0.5)) == 'uncertain'


def test_model_catalog():
    assert len(MODEL_OPTIONS) == 4
    assert get_model_option(' CNN-Realtime ').type == 'realtime'
    assert get_model_option('resnet') is None
    assert is_realtime_model('mobilenet-realtime') is True
    assert is_realtime_model('cnn-uploaded') is False
