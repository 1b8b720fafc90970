"""
Logging setup for SiteForge
"""

import logging
from datetime import datetime
from pathlib import Path

LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(log_file: str = None, verbose: bool = False) -> logging.Logger:
    """Setup structured logging for the generation process"""
    if log_file is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = f"logs/siteforge_{timestamp}.log"

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    level = logging.DEBUG if verbose else logging.INFO
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    file_handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)

    # Console only shows warnings unless verbose; rich owns the terminal otherwise
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level if verbose else logging.WARNING)
    console_handler.setFormatter(formatter)

    app_logger = logging.getLogger('siteforge')
    app_logger.setLevel(level)
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()
    app_logger.addHandler(file_handler)
    app_logger.addHandler(console_handler)

    return app_logger
