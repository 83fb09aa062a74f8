"""Core runtime helpers: settings, logging, auth and error handling."""
