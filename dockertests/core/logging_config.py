"""
Logging Configuration
YAML dictConfig loader plus a JSON formatter for CI log ingestion.
"""

import logging
import logging.config
import json
import os
import string
from datetime import datetime, timezone

import yaml


class JsonLogFormatter(logging.Formatter):
    """
    One JSON object per record.

    Fields:
      - _time: ISO8601 timestamp (millisecond precision)
      - level: Log level
      - logger: Logger name (e.g. dockertests.container, dockertests.readiness)
      - message: Log message
      - extra fields such as container / stream set by the log relay
    """

    standard_attrs = {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "_time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # LogRelay passes container / stream through extra=; they land here
        for key, value in record.__dict__.items():
            if key not in self.standard_attrs and not key.startswith("_"):
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(config_path: str = "config/dockertests_log.yaml"):
    """
    YAML設定ファイルを読み込み、環境変数を置換した上でロギングを初期化します。
    """
    if not os.path.exists(config_path):
        logging.basicConfig(level=logging.INFO)
        return

    with open(config_path, "r", encoding="utf-8") as f:
        # ${LOG_LEVEL} などの形式に対応
        template = string.Template(f.read())

        mapping = os.environ.copy()
        mapping.setdefault("LOG_LEVEL", "INFO")
        mapping.setdefault("LOG_FORMATTER", "plain")

        content = template.safe_substitute(mapping)
        config = yaml.safe_load(content)
        logging.config.dictConfig(config)
