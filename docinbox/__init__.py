"""docinbox: SMS document intake webhook, health checks and error contract."""

__version__ = "0.1.0"
