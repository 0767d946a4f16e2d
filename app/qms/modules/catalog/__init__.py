"""
Standard catalog (ISO 9001:2015).

Static, immutable definitions of requirements and standard-mandated functions.
Loaded once at import time; nothing in the engine mutates them.
"""
