"""
workbench - Collections, workspaces and a multi-pane reading workbench
"""

__version__ = "0.3.0"
