"""Command line interface for seatkeeper."""
