"""Artifact storage and generational snapshot layer.

This package persists normalized feed artifacts and compares successive
snapshots of the same feed to report removed entries.
"""
