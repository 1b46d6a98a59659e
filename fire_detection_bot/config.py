from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    model_id: str = 'cnn-uploaded'
    realtime_model_id: str = 'cnn-realtime'
    inference_delay_ms: int = 1500
    metadata_shortcut_enabled: bool = True
    false_positive_rate: float = 0.15
    random_seed: int | None = None
    notifier: str = 'sms_stub'
    notifier_delay_ms: int = 1500
    alert_phone_number: str = ''
    alert_threshold: float = 0.7
    alert_phone_min_length: int = 10
    capture_interval_ms: int = 1000
    capture_directory: str = ''
    max_image_bytes: int = 10 * 1024 * 1024
    host: str = '127.0.0.1'
    port: int = 8001
    log_level: str = 'INFO'
    version: str = '1.0.0'


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
