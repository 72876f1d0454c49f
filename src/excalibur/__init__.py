"""
Excalibur - Excel report generation from SQL queries.

Fills an Excel template: every row whose reference column names a query
file gets that query's single result row substituted into its `{{ .Field }}`
placeholders.

Usage:
    # CLI
    excalibur generate --dsn sqlite:///sales.db --report-template-path template.xlsx

    # Programmatic
    from excalibur.application.context import RunContext
    from excalibur.application.report import ReportGenerator
    from excalibur.infrastructure.config import load_config
    from excalibur.infrastructure.datasource import open_data_source

    config = load_config(config_file="excalibur.jsonc")
    source = open_data_source(config.datasource)
    try:
        ReportGenerator(source, config.report).generate(RunContext(config.report.timeout))
    finally:
        source.close()
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
