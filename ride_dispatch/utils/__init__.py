"""Utility modules."""

from ride_dispatch.utils.logging import get_logger, setup_logging
from ride_dispatch.utils.timeutils import utcnow

__all__ = ["get_logger", "setup_logging", "utcnow"]
