"""
Function instances: a StandardFunction attached to a process.

Cardinality:
- unique functions: at most one instance in the whole management system
- per_process functions: at most one instance per (function, process)

Instances are never deleted; status changes model their retirement. History and
evidence are append-only.
"""
