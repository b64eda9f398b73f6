#main.py

"""
notifywait - wait for file changes and report them
"""
import sys

from notifywait.cli import main

if __name__ == "__main__":
    sys.exit(main())
