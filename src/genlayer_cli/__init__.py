"""GenLayer CLI: wallet, keystore and validator operations for GenLayer networks."""

__version__ = "0.1.0"
