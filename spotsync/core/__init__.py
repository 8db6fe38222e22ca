"""Core layer: configuration, logging, exceptions, models and the sync engine."""
