# -*- coding: utf-8 -*-
# Copyright (c) 2004-2018 Alterra, Wageningen-UR
# Allard de Wit (allard.dewit@wur.nl), April 2014
"""Settings for cnpools.

Only logging is configurable. Levels can be overridden through the
environment variables CNPOOLS_LOG_LEVEL (console) and CNPOOLS_LOG_FILE
(path of an optional log file written at CNPOOLS_LOG_LEVEL_FILE).
"""
import os

LOG_LEVEL_CONSOLE = os.getenv("CNPOOLS_LOG_LEVEL", "WARNING").upper()
LOG_FILE_NAME = os.getenv("CNPOOLS_LOG_FILE")
LOG_LEVEL_FILE = os.getenv("CNPOOLS_LOG_LEVEL_FILE", "INFO").upper()

LOG_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        },
        "brief": {"format": "[%(levelname)s] - %(message)s"},
    },
    "handlers": {
        "console": {
            "level": LOG_LEVEL_CONSOLE,
            "class": "logging.StreamHandler",
            "formatter": "brief",
        },
    },
    "loggers": {
        "cnpools": {
            "handlers": ["console"],
            "level": "DEBUG",
            "propagate": True,
        },
    },
}

if LOG_FILE_NAME:
    LOG_CONFIG["handlers"]["file"] = {
        "level": LOG_LEVEL_FILE,
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": "standard",
        "filename": LOG_FILE_NAME,
        "maxBytes": 1024**2,
        "backupCount": 7,
        "mode": "a",
        "encoding": "utf8",
    }
    LOG_CONFIG["loggers"]["cnpools"]["handlers"].append("file")
