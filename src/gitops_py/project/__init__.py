"""Project file manipulation."""
