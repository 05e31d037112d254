"""Project-wide settings builders, environment routing and shared URL helpers."""
