# logging_config.py

import logging
import json
from logging.handlers import RotatingFileHandler

TRADE = 25
SUCCESS = 26


def setup_custom_log_levels():
    """
    Adds custom TRADE and SUCCESS log levels and methods to Python's logging.
    Called by both the bot entry point and the test suite.
    """
    if not hasattr(logging, 'TRADE'):
        logging.addLevelName(TRADE, "TRADE")
        logging.TRADE = TRADE

    if not hasattr(logging, 'SUCCESS'):
        logging.addLevelName(SUCCESS, "SUCCESS")
        logging.SUCCESS = SUCCESS

    def trade(self, message, *args, **kws):
        if self.isEnabledFor(TRADE):
            self._log(TRADE, message, args, **kws)

    def success(self, message, *args, **kws):
        if self.isEnabledFor(SUCCESS):
            self._log(SUCCESS, message, args, **kws)

    if not hasattr(logging.Logger, 'trade'):
        logging.Logger.trade = trade

    if not hasattr(logging.Logger, 'success'):
        logging.Logger.success = success


class JsonFormatter(logging.Formatter):
    """Formats log records into a JSON string."""
    def format(self, record):
        log_object = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
            "funcName": record.funcName,
            "lineNo": record.lineno
        }
        if record.exc_info:
            log_object['exc_info'] = self.formatException(record.exc_info)
        return json.dumps(log_object)


def get_logger(name: str) -> logging.Logger:
    """Returns a module logger with the TRADE/SUCCESS methods available."""
    setup_custom_log_levels()
    return logging.getLogger(name)


def setup_logging(level=logging.INFO, log_file='bot.log', json_log_file='bot_structured.log'):
    """Configures the root logger for dual file output (human-readable and JSON) plus console."""
    setup_custom_log_levels()

    logger = logging.getLogger()
    logger.setLevel(level)

    if logger.hasHandlers():
        logger.handlers.clear()

    log_format_string = '%(asctime)s - %(levelname)s - [%(module)s:%(lineno)d] - %(message)s'
    human_formatter = logging.Formatter(log_format_string)
    file_handler = RotatingFileHandler(log_file, maxBytes=5*1024*1024, backupCount=2)
    file_handler.setFormatter(human_formatter)
    logger.addHandler(file_handler)

    json_handler = RotatingFileHandler(json_log_file, maxBytes=5*1024*1024, backupCount=2)
    json_handler.setFormatter(JsonFormatter())
    logger.addHandler(json_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(human_formatter)
    logger.addHandler(console_handler)

    logging.info("Logging configured with human-readable, JSON, and console outputs.")
