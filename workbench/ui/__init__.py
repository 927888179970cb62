"""Textual UI and the view helpers it is built from."""
