"""
Long-running services: scheduler daemon and application lifecycle.
"""
