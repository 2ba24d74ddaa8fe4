#!/usr/bin/env python3
"""Run the scheduler and network synthesis from a config file.

Usage: python main.py --config configs/config.yaml
"""

from fmsplan.main import cli

if __name__ == "__main__":
    cli()
