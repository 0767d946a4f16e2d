"""
Feature modules live under this package.

Each module owns its entities (models.py) and its operations (service.py); service
functions take the session repository as their first argument.
"""
