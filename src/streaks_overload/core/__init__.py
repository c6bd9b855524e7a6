# src/streaks_overload/core/__init__.py
