"""Content-addressed blob backend contract with a conformance and benchmark harness."""

__version__ = "0.1.0"
