"""
Logging configuration for the eCFR word-count crawler
"""

import logging
import logging.handlers
from datetime import datetime
import colorlog

from config import settings


def setup_logging(log_level: str = settings.LOG_LEVEL, log_to_file: bool = True) -> None:
    """Configure logging for the application"""
    level = getattr(logging, log_level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = colorlog.StreamHandler()
    console_handler.setFormatter(colorlog.ColoredFormatter(
        '%(log_color)s%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt=settings.LOG_DATE_FORMAT,
        log_colors={
            'DEBUG': 'cyan',
            'INFO': 'green',
            'WARNING': 'yellow',
            'ERROR': 'red',
            'CRITICAL': 'red,bg_white',
        }
    ))
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    if log_to_file:
        logs_dir = settings.LOGS_DIR
        logs_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime('%Y%m%d')
        file_formatter = logging.Formatter(settings.LOG_FORMAT, datefmt=settings.LOG_DATE_FORMAT)

        # Crawls run for hours, so everything goes to a rotating file
        crawl_log = logging.handlers.RotatingFileHandler(
            logs_dir / f"ecfr_wordcount_{stamp}.log",
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        crawl_log.setFormatter(file_formatter)
        crawl_log.setLevel(logging.DEBUG)
        root_logger.addHandler(crawl_log)

        error_log = logging.handlers.RotatingFileHandler(
            logs_dir / f"ecfr_wordcount_errors_{stamp}.log",
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        error_log.setFormatter(file_formatter)
        error_log.setLevel(logging.ERROR)
        root_logger.addHandler(error_log)

    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('requests').setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized - Level: {log_level.upper()}")
    if log_to_file:
        logger.info(f"Log files: {settings.LOGS_DIR}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name"""
    return logging.getLogger(name)
