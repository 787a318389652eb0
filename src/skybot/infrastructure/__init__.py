"""Adapters for the network and text processing."""
