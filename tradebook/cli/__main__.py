"""
CLI package main entry point
"""

from tradebook.cli import main

if __name__ == "__main__":
    main()
