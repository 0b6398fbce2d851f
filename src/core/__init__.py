"""Configuration and shared clients."""
