"""
Context issues (SWOT) and risk evaluation.

Risk-type issues carry an append-only list of RiskVersions; the latest version
(highest version_number) defines the issue's current severity, probability,
criticity and priority.
"""
