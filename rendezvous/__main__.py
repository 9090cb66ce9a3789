#!/usr/bin/env python3
"""
Rendezvous CLI

This module allows the CLI to be run as:
    python -m rendezvous

Or installed and run as:
    rendezvous
"""

from .cli import main

if __name__ == "__main__":
    main()
