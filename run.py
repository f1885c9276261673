#!/usr/bin/env python3
"""nanomaps - map viewport service.

Starts the Flask server that answers viewport queries and renders map snapshots.
"""

from nanomaps import config
from nanomaps.log import setup_logging
from nanomaps.server import app

if __name__ == "__main__":
    setup_logging(config.LOG_LEVEL, config.LOG_DIR)
    app.run(host=config.HOST, port=config.PORT, debug=False)
