"""
LEL Tracker

Route and time inference for London-Edinburgh-London rider tracking:
where each rider is, how fast they are going and whether they are
still riding, derived from sparse checkpoint records.
"""

__version__ = "0.1.0"
