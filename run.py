#!/usr/bin/env python3
"""Convenience runner for replaying a recorded run.

Usage:
    python run.py --samples samples.csv [--match] [--export runs.xlsx]
"""
import logging
from run_tracker.main import main

if __name__ == "__main__":
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")
    raise SystemExit(main())
