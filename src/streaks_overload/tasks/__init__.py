# src/streaks_overload/tasks/__init__.py
