"""
Logging setup shared by the API server, the scheduler and the CLI.
"""

import logging
import re

from .config import Settings


class ColorStripFormatter(logging.Formatter):
    """Formatter that strips ANSI color codes from log messages."""
    ansi_escape = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')

    def format(self, record):
        message = super().format(record)
        return self.ansi_escape.sub('', message)


def setup_logging(settings: Settings, log_to_file: bool = True):
    """
    Configure root and 'scraper' loggers: colors on the console, plain
    text in the log file.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(settings.log_format))
    handlers = [console_handler]

    if log_to_file:
        settings.log_dir.mkdir(exist_ok=True)
        file_handler = logging.FileHandler(settings.log_file, encoding='utf-8')
        file_handler.setFormatter(ColorStripFormatter(settings.log_format))
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    # Scraper loggers get the same handlers directly so messages appear once
    scraper_logger = logging.getLogger('scraper')
    scraper_logger.propagate = False
    scraper_logger.handlers.clear()
    for handler in handlers:
        scraper_logger.addHandler(handler)
    scraper_logger.setLevel(level)
