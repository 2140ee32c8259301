"""Operator tooling for decommissioning a Thanos L2 bridge via force withdrawals."""

__version__ = "0.1.0"
