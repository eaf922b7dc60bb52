"""PySide6 rendering of the condition editor."""
