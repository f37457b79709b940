"""Test fixtures and in-memory collaborators."""
