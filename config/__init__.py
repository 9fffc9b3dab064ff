"""Environment driven server configuration."""
