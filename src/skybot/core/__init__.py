"""Configuration, logging, errors and rate limiting."""
