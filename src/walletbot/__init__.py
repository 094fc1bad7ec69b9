"""Chat-driven custodial wallet for one native coin."""

__version__ = "0.1.0"
