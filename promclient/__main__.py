#!/usr/bin/env python3
"""
Main entry point for running the CLI as a module.

Usage:
    python3 -m promclient query 'up'
    python3 -m promclient query-range 'up' --range 3600 --step 60
    python3 -m promclient metrics
"""

from .cli import main

if __name__ == "__main__":
    main()
