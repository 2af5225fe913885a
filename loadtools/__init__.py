"""Load test queueing, xUnit reporting, log saving and prebuilt worker image tools."""

__version__ = "0.1.0"