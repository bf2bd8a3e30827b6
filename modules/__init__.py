"""
Application Modules.

- backend/: Notes backend: API, services, database, configuration, background purge
"""
