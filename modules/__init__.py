"""
Application Modules.

- backend/: Backend services, API, listing engine, database, configuration
- cli/: Admin client (Typer + Rich) talking to the backend over HTTP
"""
