"""
VidéoScramble — key-driven row scrambling for video streams.
"""

__version__ = "1.0.0"
