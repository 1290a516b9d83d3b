"""
eCFR word-count crawler.

Walks agencies -> CFR titles -> structural parts on the eCFR API, counts the
words in each part and keeps a resumable checkpoint on disk.
"""

__version__ = "1.0.0"
