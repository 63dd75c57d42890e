"""Ambient helpers: errors, logging, configuration, paths and console output."""
