"""
plangraph - hierarchy and dependency engine for the planning whiteboard.

Every entry point is a pure function over a snapshot of nodes and edges and
returns proposals or reports for the caller to apply.
"""

__version__ = "0.4.0"
