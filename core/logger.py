# core/logger.py
import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler


class JSONFormatter(logging.Formatter):
    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "logger": record.name,
            "level": record.levelname,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record)


# Create logs directory if it does not exist
logs_dir = os.getenv("LOG_DIR", "logs")
if not os.path.exists(logs_dir):
    os.makedirs(logs_dir)

log_file_path = os.path.join(logs_dir, 'impressions_webhook.log')

# Configure logging
logger = logging.getLogger("impressions_webhook")
logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
formatter = JSONFormatter()

handler = RotatingFileHandler(log_file_path, maxBytes=10000000, backupCount=5)
handler.setFormatter(formatter)
logger.addHandler(handler)

# Containers collect stdout
console = logging.StreamHandler(sys.stdout)
console.setFormatter(formatter)
logger.addHandler(console)
