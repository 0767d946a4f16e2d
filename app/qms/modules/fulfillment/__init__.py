"""
Requirement fulfillment inference.

Read-only: derives whether each allocated requirement of a process is satisfied
from the current documents, issues and actions. Nothing here mutates the repository.
"""
