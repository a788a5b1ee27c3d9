"""Partial and streaming JSON — repair of truncated input and stream sessions."""
