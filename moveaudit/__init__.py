"""moveaudit: heuristic security audit for Sui Move smart contracts."""

__version__ = "0.1.0"
