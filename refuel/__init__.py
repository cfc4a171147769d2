"""
Refuel: find water, food and stores along a GPX route and build a
modified route that detours to the ones you pick.
"""

__version__ = "0.1.0"
