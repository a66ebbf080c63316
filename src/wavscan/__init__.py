"""Chunk-walking reader for RIFF/WAVE audio files."""

__version__ = "0.1.0"
