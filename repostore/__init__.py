"""Content store for member photos and project files, backed by GitHub repositories."""
