"""
Shared helpers for content-type routing and filesystem paths.
"""
