"""
Application layer: run context and the report generation engine.
"""
