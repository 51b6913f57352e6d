"""Chain access, log decoding and formatting utilities."""
