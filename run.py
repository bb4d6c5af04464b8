#!/usr/bin/env python3
"""
Launcher script for Pose Studio.

Usage:
    python run.py           # Launch GUI application
"""

if __name__ == "__main__":
    import sys

    from posestudio.app import main
    sys.exit(main())
