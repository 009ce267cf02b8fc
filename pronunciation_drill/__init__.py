"""
Pronunciation Drill

Flip-card vocabulary practice with on-device pronunciation checking.
"""

__version__ = "0.1.0"
