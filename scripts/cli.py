import logging
import sys

import uvicorn
from pytest import main as pytest_main

from watchparty.core.config import settings
from watchparty.core.logging import setup_logging

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def start_dev_server() -> None:
    logger.info("Starting development server with reload")
    uvicorn.run("watchparty.main:app", host="0.0.0.0", port=8000, reload=True)


def start_prod_server() -> None:
    logger.info("Starting production server")
    uvicorn.run("watchparty.main:app", host="0.0.0.0", port=8000)


def run_tests() -> None:
    logger.info("Running tests")
    sys.exit(pytest_main(sys.argv[1:]))


def run_coverage() -> None:
    logger.info("Running test coverage")
    sys.exit(
        pytest_main(
            ["--cov=watchparty", "--cov-report=term-missing", "--no-cov-on-fail"]
        ),
    )
