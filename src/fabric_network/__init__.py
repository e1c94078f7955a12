"""fabricnet - declarative network management for fabric controllers."""

__version__ = "0.1.0"
