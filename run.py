#!/usr/bin/env python3
"""
Accrual Ledger API Entry Point

Starts the FastAPI server exposing transactions, interest rules and
monthly statements. Use `python -m accrual_ledger` for the interactive console.
"""

import sys

from accrual_ledger.api import run_server
from accrual_ledger.config import get_config
from accrual_ledger.logging_config import setup_logging


if __name__ == "__main__":
    config = get_config()
    setup_logging(config.log_level, config.log_format, config.log_file)

    print("🏦 Starting Accrual Ledger API...")
    print("💰 All financial calculations use Decimal precision")
    print(f"🌐 API available at: http://localhost:{config.api_port}")
    print(f"📚 Documentation at: http://localhost:{config.api_port}/docs")
    print()

    try:
        run_server()
    except KeyboardInterrupt:
        print("\n👋 Shutting down Accrual Ledger API...")
    except Exception as e:
        print(f"❌ Error starting server: {e}")
        sys.exit(1)
