"""Domain identifiers, entities and services."""
