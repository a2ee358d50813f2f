"""
Configuration module.

Typed defaults, YAML loading with layered precedence, and validation of the
engine configuration. Invalid configuration is fatal at startup.
"""
