#!/usr/bin/env python3
"""
Budget Ledger Entry Point

Starts the FastAPI server with host and port taken from configuration.
"""

import sys

from budget_ledger.api import run_server
from budget_ledger.config import get_config


if __name__ == "__main__":
    config = get_config()
    print("Starting Budget Ledger...")
    print(f"API available at: http://{config.api_host}:{config.api_port}")
    print(f"Documentation at: http://{config.api_host}:{config.api_port}/docs")
    print()

    try:
        run_server(
            host=config.api_host,
            port=config.api_port,
            debug=False
        )
    except KeyboardInterrupt:
        print("\nShutting down Budget Ledger...")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)
