# src/statustracker/logging_setup.py
from __future__ import annotations

import logging
import os
import sys
import uuid
from logging.handlers import RotatingFileHandler
from typing import Optional

from pythonjsonlogger.json import JsonFormatter


def _build_formatter(json_mode: bool) -> logging.Formatter:
    if json_mode:
        return JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s %(run_id)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    return logging.Formatter(
        fmt="%(asctime)s %(levelname)-7s [%(run_id)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def setup_logging(debug: bool = False, level_name: Optional[str] = None) -> str:
    """
    Configure the root logger and return the run id stamped on every record.

    Logs go to stderr so stdout stays free for the report itself. LOG_LEVEL,
    LOG_JSON and LOG_FILE are read from the environment; ``debug`` wins over
    LOG_LEVEL.
    """
    run_id = os.getenv("RUN_ID") or str(uuid.uuid4())

    # unwrap a factory installed by an earlier call so they do not stack
    old_factory = logging.getLogRecordFactory()
    old_factory = getattr(old_factory, "wrapped", old_factory)

    def record_factory(*args, **kwargs):
        record = old_factory(*args, **kwargs)
        if not hasattr(record, "run_id"):
            record.run_id = run_id
        return record

    record_factory.wrapped = old_factory
    logging.setLogRecordFactory(record_factory)

    if debug:
        log_level = logging.DEBUG
    else:
        name = (level_name or os.getenv("LOG_LEVEL") or "WARNING").upper()
        log_level = getattr(logging, name, logging.WARNING)
    json_mode = os.getenv("LOG_JSON", "false").lower() == "true"
    log_file = os.getenv("LOG_FILE")

    root = logging.getLogger()
    root.setLevel(log_level)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = _build_formatter(json_mode)

    sh = logging.StreamHandler(sys.stderr)
    sh.setFormatter(fmt)
    root.addHandler(sh)

    if log_file:
        max_bytes = int(os.getenv("LOG_MAX_BYTES", "10485760"))
        backup_count = int(os.getenv("LOG_BACKUP_COUNT", "5"))
        fh = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
        fh.setFormatter(fmt)
        root.addHandler(fh)

    if log_level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.getLogger(__name__).debug("Logging initialized")
    return run_id
