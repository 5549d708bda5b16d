"""Shared utilities used by the buildinfo tooling."""
