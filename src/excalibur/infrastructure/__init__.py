"""Infrastructure layer: logging, files, spreadsheets, data sources, config files."""
