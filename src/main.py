"""
Excalibur - Excel report generation from SQL queries.

Fills an Excel template with single-row query results referenced per row.
"""

import sys
from excalibur.interface.cli import main


if __name__ == "__main__":
    sys.exit(main())
