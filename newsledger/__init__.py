"""Off-chain side of the newsledger content registry."""

__version__ = "0.1.0"
