"""
Core infrastructure: logging, exceptions, paths, settings, validation
and snapshot backup management.
"""
