"""Compliance percentages rolled up from function instance statuses."""
