"""Application configuration."""

import os

# Logging
LOG_LEVEL = os.getenv("MFACCESS_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
