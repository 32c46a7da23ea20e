#!/usr/bin/env python3
"""
Script to run the Economic Calendar Watch API server.

The server also hosts the scheduler, so this is a complete deployment.
"""

import uvicorn
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from api.config import config
from utilities.config import config as watch_config
from utilities.logger import setup_logging


def main():
    """Run the API server."""
    setup_logging(
        log_level=watch_config.log_level,
        log_format=watch_config.log_format,
        log_file=watch_config.log_file,
        debug=watch_config.debug
    )

    print("🚀 Starting Economic Calendar Watch API Server")
    print(f"📡 Host: {config.host}")
    print(f"🔌 Port: {config.port}")
    print(f"🌐 Debug: {config.debug}")
    print(f"🕑 Timezone: {watch_config.timezone}")
    print("=" * 50)

    uvicorn.run(
        "api.main:app",
        host=config.host,
        port=config.port,
        reload=False,
        log_level=config.log_level.lower(),
        access_log=True
    )


if __name__ == "__main__":
    main()
