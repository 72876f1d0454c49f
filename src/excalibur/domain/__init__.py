"""
Domain layer package.

Contains configuration models and the error hierarchy. No I/O.
"""
