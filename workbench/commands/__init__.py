"""CLI command groups for workbench."""
