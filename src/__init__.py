"""
Photo albums - album directories, their documents and the recently added feed.
"""
__version__ = "0.1.0"
