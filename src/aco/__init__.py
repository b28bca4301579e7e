"""Audio Compression Orchestrator.

Reduces uploaded audio assets to a fixed mobile MP3 profile, replacing the
stored asset in place while keeping its identity stable.
"""

__version__ = "0.3.0"
