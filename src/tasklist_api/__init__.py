"""
FastAPI Task List Backend package.

The application instance lives in `tasklist_api.main:app`; the business rules
live in `tasklist_api.models` (TaskList entity) and `tasklist_api.services`
(TaskListService).
"""

__version__ = "0.1.0"
