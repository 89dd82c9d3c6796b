"""Reserve ParaIds and register parachains on Tanssi networks."""

__version__ = "0.1.0"
