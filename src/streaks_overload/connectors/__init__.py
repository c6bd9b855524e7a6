# src/streaks_overload/connectors/__init__.py
