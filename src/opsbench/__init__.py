"""opsbench: micro-benchmarking harness reporting operations per second."""

__version__ = "0.1.0"
