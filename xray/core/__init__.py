"""
Core module - tracer, query service, store and their helpers
"""
