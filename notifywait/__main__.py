"""
Allow running notifywait with ``python -m notifywait``
"""
from notifywait.cli import run

if __name__ == "__main__":
    run()
