"""Normalization of raw gateway payloads into contract objects."""
