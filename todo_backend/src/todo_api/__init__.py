"""
FastAPI Todo Backend package.

Todos with nested subtasks, stored through SQLAlchemy and served under
/api/todos. The application instance lives in src.todo_api.main.
"""
