#!/usr/bin/env python3
"""Main launcher entry point for the containment demo."""
import asyncio
import logging
import os
import sys

# Add backend sources to Python path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), 'backend', 'src'))

from episodes_demo import main

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    print("Starting containment demo...")
    print("Reports are sent to $TELEMETRY_ENDPOINT.")

    asyncio.run(main())
