"""SpendWatch - heuristic anomaly detection over public spending records"""

__version__ = "0.1.0"
