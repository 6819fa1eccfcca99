"""
Operational helpers: logging setup and timing utilities.
"""
