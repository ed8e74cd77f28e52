"""
Main entry point for the SPTS platform.
"""

import argparse
import json
import logging
import threading
import time
from typing import Any, Dict, Mapping, Optional, Union

from .api.rest_api import SptsRestAPI
from .config import PlatformConfig
from .logging_utils import configure_logging
from .persistence.repositories import (
    AlertRepository, EnrollmentRepository, GradeNodeRepository, StudentRepository
)
from .services import (
    AlertService, ConcurrencyManager, GradeEntryService, GradeEvaluationService, StudentService,
    build_default_bus
)

logger = logging.getLogger(__name__)


class SptsPlatform:
    """Main platform class that wires repositories, services and the REST API."""

    def __init__(self, config: Union[PlatformConfig, Mapping[str, Any], None] = None):
        if isinstance(config, PlatformConfig):
            self._config = config
        else:
            self._config = PlatformConfig.from_mapping(config)
        self._rest_thread: Optional[threading.Thread] = None
        self._initialize_platform()

    def _initialize_platform(self):
        """Initialize the platform with all services."""
        configure_logging(self._config.log_level)
        logger.info("Initializing SPTS platform...")

        self._concurrency_manager = ConcurrencyManager(default_timeout=self._config.lock_timeout)

        self._repositories = {
            'student': StudentRepository(),
            'enrollment': EnrollmentRepository(),
            'grade': GradeNodeRepository(),
            'alert': AlertRepository(),
        }

        self._alert_service = AlertService(self._repositories['alert'])
        self._student_service = StudentService(
            self._repositories['student'],
            self._repositories['enrollment'],
            self._concurrency_manager,
            graduation_min_credits=self._config.graduation_min_credits,
            graduation_min_gpa=self._config.graduation_min_gpa
        )
        self._notification_bus = build_default_bus(self._student_service, self._alert_service, self._config)
        self._evaluation_service = GradeEvaluationService(
            self._repositories['enrollment'],
            self._repositories['student'],
            self._repositories['grade'],
            self._notification_bus,
            self._concurrency_manager
        )
        self._grade_entry_service = GradeEntryService(
            self._repositories['grade'],
            self._repositories['enrollment'],
            self._repositories['student'],
            self._notification_bus,
            self._concurrency_manager
        )

        self._rest_api = SptsRestAPI(
            self._student_service,
            self._evaluation_service,
            self._grade_entry_service,
            self._alert_service,
            cors_origins=self._config.cors_origins
        )
        logger.info("SPTS platform initialized")

    @property
    def config(self) -> PlatformConfig:
        return self._config

    @property
    def app(self):
        """The FastAPI application."""
        return self._rest_api.app

    @property
    def repositories(self) -> Dict[str, Any]:
        return dict(self._repositories)

    @property
    def concurrency_manager(self) -> ConcurrencyManager:
        return self._concurrency_manager

    @property
    def notification_bus(self):
        return self._notification_bus

    @property
    def student_service(self) -> StudentService:
        return self._student_service

    @property
    def evaluation_service(self) -> GradeEvaluationService:
        return self._evaluation_service

    @property
    def grade_entry_service(self) -> GradeEntryService:
        return self._grade_entry_service

    @property
    def alert_service(self) -> AlertService:
        return self._alert_service

    def start_rest_server(self, host: Optional[str] = None, port: Optional[int] = None,
                          background: bool = False):
        """Serve the REST API with uvicorn."""
        import uvicorn

        host = host or self._config.rest_host
        port = port or self._config.rest_port

        def run_server():
            uvicorn.run(self.app, host=host, port=port, log_level=self._config.log_level.lower())

        logger.info("Starting REST server on %s:%d", host, port)
        if not background:
            run_server()
            return
        self._rest_thread = threading.Thread(target=run_server, daemon=True)
        self._rest_thread.start()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="SPTS Student Performance Tracking")
    parser.add_argument("--host", type=str, default=None, help="REST server host")
    parser.add_argument("--port", type=int, default=None, help="REST server port")
    parser.add_argument("--config", type=str, help="Configuration file path (JSON)")

    args = parser.parse_args()

    if args.config:
        with open(args.config, 'r') as f:
            config = PlatformConfig.from_mapping(json.load(f))
    else:
        config = PlatformConfig.from_env()

    platform = SptsPlatform(config)
    try:
        platform.start_rest_server(args.host, args.port, background=True)
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    main()
