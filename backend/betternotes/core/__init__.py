"""
Core application infrastructure (configuration, logging, middleware, error handlers).
"""
