"""
Entry point for running askme as a module.

Usage:
    python -m askme
    python -m askme go algorithms
    python -m askme add
"""
from .cli import main

if __name__ == "__main__":
    main()
