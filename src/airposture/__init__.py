"""
AirPosture monitor

Head posture monitoring from headphone motion: free-movement calibration,
relative-attitude classification, hysteresis alerts and a 1 Hz posture log.
"""

__version__ = "0.1.0"
