"""
Generation runner.

Wires configuration, data source and generator together for one CLI run and
maps the outcome to a process exit code.
"""

from __future__ import annotations

import logging
import signal
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Sequence

from excalibur.application.context import RunContext
from excalibur.application.report import GenerationResult, ReportGenerator
from excalibur.application.report.ports import DataSource
from excalibur.domain.config import AppConfig, DataSourceConfig, format_duration
from excalibur.domain.errors import (
    DataSourceError,
    ExcaliburError,
    GenerationCancelled,
    GenerationTimedOut,
)
from excalibur.infrastructure.datasource import open_data_source
from excalibur.infrastructure.logging_config import ContextLogger, get_logger
from excalibur.utils.dsn import mask_dsn_password

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_TIMEOUT = 124
EXIT_CANCELLED = 130

DataSourceFactory = Callable[[DataSourceConfig, ContextLogger], DataSource]


@contextmanager
def cancel_on_signals(
    ctx: RunContext,
    log: ContextLogger,
    signals: Sequence[signal.Signals] = (signal.SIGINT, signal.SIGTERM),
) -> Iterator[None]:
    """
    Cancel `ctx` on the first SIGINT/SIGTERM; a second signal aborts immediately.

    Handlers are only installed from the main thread and are restored on exit.
    """

    def _handler(signum, frame):
        if ctx.cancelled:
            raise KeyboardInterrupt
        log.warning("Received %s, cancelling report generation", signal.Signals(signum).name)
        ctx.cancel()

    previous = {}
    for sig in signals:
        try:
            previous[sig] = signal.signal(sig, _handler)
        except (ValueError, OSError):
            # Not the main thread, or the signal is unsupported on this platform
            log.debug("Could not install handler for %s", sig)

    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


class GenerationRunner:
    """
    Runs one report generation from a validated configuration.

    Usage:
        runner = GenerationRunner(config, logger)
        exit_code = runner.run()
        if runner.result:
            print(runner.result.stats)
    """

    def __init__(
        self,
        config: AppConfig,
        logger: logging.Logger | ContextLogger | None = None,
        data_source_factory: DataSourceFactory = open_data_source,
    ) -> None:
        self.config = config
        self.log = get_logger(logger, __name__)
        self.data_source_factory = data_source_factory
        self.result: Optional[GenerationResult] = None
        self.error: Optional[BaseException] = None

    def run(self, ctx: Optional[RunContext] = None, install_signal_handlers: bool = True) -> int:
        """
        Open the data source, generate the report, close the data source.

        Args:
            ctx: Parent context (defaults to a fresh background context)
            install_signal_handlers: Wire SIGINT/SIGTERM to cancellation

        Returns:
            Exit code: 0 success, 1 failure, 124 timeout, 130 cancelled
        """
        ctx = ctx or RunContext.background()
        if not install_signal_handlers:
            return self._run(ctx)
        with cancel_on_signals(ctx, self.log):
            return self._run(ctx)

    def _run(self, ctx: RunContext) -> int:
        report = self.config.report
        self.log.debug(
            "Using normalized configuration",
            extra={
                "context": {
                    "template_path": str(report.template_path),
                    "output_path": str(report.output_path),
                    "queries_dir": str(report.queries_dir),
                    "ref_column": report.ref_column,
                    "timeout": format_duration(report.timeout),
                    "on_fetch_error": report.on_fetch_error.value,
                    "dsn": mask_dsn_password(self.config.datasource.get_dsn()),
                }
            },
        )

        self.log.info("Initializing data source...")
        try:
            data_source = self.data_source_factory(self.config.datasource, self.log)
        except DataSourceError as e:
            self.error = e
            self.log.error("Failed to initialize data source: %s", e)
            return EXIT_FAILURE
        except KeyboardInterrupt as e:
            self.error = e
            self.log.warning("Report generation cancelled")
            return EXIT_CANCELLED

        try:
            return self._generate(ctx, data_source)
        finally:
            self.log.debug("Closing data source...")
            try:
                data_source.close()
            except DataSourceError as e:
                self.log.warning("Error closing data source: %s", e)
            else:
                self.log.debug("Data source closed successfully.")

    def _generate(self, ctx: RunContext, data_source: DataSource) -> int:
        timeout = self.config.report.timeout
        generator = ReportGenerator(data_source, self.config.report, logger=self.log)

        self.log.info("Starting report generation...")
        try:
            self.result = generator.generate(ctx.with_timeout(timeout))
        except GenerationTimedOut as e:
            self.error = e
            self.log.error("report generation timed out after %s", format_duration(timeout))
            return EXIT_TIMEOUT
        except (GenerationCancelled, KeyboardInterrupt) as e:
            self.error = e
            self.log.warning("report generation cancelled")
            return EXIT_CANCELLED
        except ExcaliburError as e:
            self.error = e
            self.log.error("Report generation failed: %s", e)
            return EXIT_FAILURE

        self.log.info(
            "Report generated successfully",
            extra={
                "context": {
                    "output_path": str(self.result.output_path),
                    "duration": f"{self.result.duration_seconds:.3f}s",
                }
            },
        )
        return EXIT_SUCCESS
