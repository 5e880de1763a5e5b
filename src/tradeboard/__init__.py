"""Tradeboard — client, project and task management for small businesses.

The REST backend behind the Tradeboard web app: companies manage their
clients, projects and tasks, with ADMIN/USER roles and JWT auth.
"""

__version__ = "0.1.0"
