"""
CLI Module.

Thin JSON-in/JSON-out command line over the learning components.
"""
