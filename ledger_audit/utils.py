"""
Utility functions for the audit system.

Helpers used by the command line entry point that are not part of the audit
itself.
"""

import datetime
import logging
import os

logger = logging.getLogger(__name__)

CLI_DATE_FORMAT = '%m-%d-%y'


def setup_logging(debug=False, log_level='info'):
    """Configure logging for the application."""
    # Determine log level
    if debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, log_level.upper(), logging.INFO)

    format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    # Get log file path from environment or use default
    log_file = os.getenv('LOG_FILE', 'ledger_audit.log')

    # Create log directory if needed
    log_dir = os.path.dirname(log_file)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir, exist_ok=True)

    # Set up logging to file and console
    logging.basicConfig(
        level=level,
        format=format,
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ],
        force=True
    )

    return log_file


def parse_cli_date(date_str):
    """Parse a MM-DD-YY date from the command line.

    Raises:
        ValueError: If the string is not a valid MM-DD-YY date
    """
    try:
        return datetime.datetime.strptime(date_str.strip(), CLI_DATE_FORMAT).date()
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid date: {date_str!r}, expected MM-DD-YY")
