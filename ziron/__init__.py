"""
Ziron dispatch: notification queue producer API, worker and retention sweeps.
"""

__version__ = "1.0.0"
