# trade_logger.py

import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler

from data_models import BundleLogData

CSV_HEADER = (
    "timestamp_utc,block_number,token_address,buy_from_venue,sell_to_venue,"
    "volume_wei,profit_wei,miner_reward_wei,gas_estimate,status"
)


class TradeLogger:
    """
    A dedicated logger to record every bundle attempt to a structured CSV file.
    """
    def __init__(self, filename: str = "bundles.csv"):
        self.filename = filename
        self.logger = self._setup_logger()
        self._write_header()

    def _setup_logger(self) -> logging.Logger:
        """
        Creates and configures a logger that writes to the specified CSV file.
        """
        # One logger per file; rows never reach the root handlers
        trade_logger = logging.getLogger(f'trade_logger.{os.path.abspath(self.filename)}')
        trade_logger.setLevel(logging.INFO)
        trade_logger.propagate = False

        if not trade_logger.handlers:
            handler = RotatingFileHandler(self.filename, maxBytes=5*1024*1024, backupCount=2)
            handler.setFormatter(logging.Formatter('%(message)s'))
            trade_logger.addHandler(handler)

        return trade_logger

    def _write_header(self):
        """Checks if the file is empty and writes a CSV header if needed."""
        try:
            with open(self.filename, 'r') as f:
                has_content = f.read(1)
        except FileNotFoundError:
            has_content = ''
        if not has_content:
            self.logger.info(CSV_HEADER)

    def log_bundle(self, entry: BundleLogData):
        """
        Formats a BundleLogData row into a CSV line and logs it.
        """
        if not isinstance(entry, BundleLogData):
            self.logger.error("log_bundle received an object that was not a BundleLogData.")
            return

        log_entry = (
            f"{int(datetime.now(timezone.utc).timestamp())},"
            f"{entry.block_number},"
            f"{entry.token_address},"
            f"{entry.buy_from_venue},"
            f"{entry.sell_to_venue},"
            f"{entry.volume},"
            f"{entry.profit},"
            f"{entry.miner_reward},"
            f"{entry.gas_estimate},"
            f"{entry.status}"
        )
        self.logger.info(log_entry)
