import logging

LOG_FORMAT = '[%(asctime)s] %(levelname)s %(name)s: %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(level: str = 'INFO') -> None:
    log_level = getattr(logging, str(level).upper(), logging.INFO)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    app_logger = logging.getLogger('fire_detection_bot')
    app_logger.handlers = [handler]
    app_logger.setLevel(log_level)
    app_logger.propagate = False
    logging.getLogger('PIL').setLevel(logging.WARNING)
