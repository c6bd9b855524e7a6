# src/streaks_overload/cli/__init__.py
