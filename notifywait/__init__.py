"""
notifywait - inotifywait-style file change watcher
"""
__version__ = "1.0.0"
