"""myfeed - scheduled feed ingestion with thumbnails and tag propagation."""

__version__ = "0.1.0"
