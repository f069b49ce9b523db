import copy
import logging
from logging.config import dictConfig
from typing import Any, Dict

from uvicorn.config import LOGGING_CONFIG as UVICORN_LOGGING_CONFIG


_NOISY_LOGGERS = {
    "httpcore": logging.INFO,
    "openai": logging.INFO,
    "googleapiclient.discovery": logging.WARNING,
    "googleapiclient.discovery_cache": logging.ERROR,
    "sqlalchemy.engine": logging.WARNING,
}


def configure_logging(debug: bool = False) -> None:
    """Configure application logging for uvicorn and the API modules."""
    log_level = "DEBUG" if debug else "INFO"

    logging_config: Dict[str, Any] = copy.deepcopy(UVICORN_LOGGING_CONFIG)

    # Plain stdout lines without color codes
    logging_config["formatters"]["default"][
        "fmt"
    ] = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    logging_config["formatters"]["default"]["use_colors"] = False
    logging_config["formatters"]["access"][
        "fmt"
    ] = '%(asctime)s | %(levelname)s | %(client_addr)s - "%(request_line)s" %(status_code)s'

    logging_config["handlers"]["default"]["stream"] = "ext://sys.stdout"
    logging_config["handlers"]["access"]["stream"] = "ext://sys.stdout"

    logging_config["loggers"]["uvicorn"]["level"] = log_level
    logging_config["loggers"]["uvicorn.error"]["level"] = log_level
    logging_config["loggers"]["uvicorn.access"]["level"] = "INFO"

    logging_config["root"] = {"handlers": ["default"], "level": log_level}

    # Keep loggers created at import time (before this call) enabled
    logging_config["disable_existing_loggers"] = False

    dictConfig(logging_config)

    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.INFO)

    for logger_name, level in _NOISY_LOGGERS.items():
        logging.getLogger(logger_name).setLevel(level)
