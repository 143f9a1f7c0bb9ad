"""
Task subsystem.

Components:
- task_models.py: the Task record and its wire payload
- task_store.py: SQLite-backed storage behind one locked connection
- task_api.py: request handlers that turn failures into messages
- reports.py: time formatting, parsing and exports
"""
