"""
Processes, their activities, and controlled documents.

Every process carries a system-generated governance activity hosting the generic
ISO 9001 requirements; it cannot be removed or edited away.
"""
