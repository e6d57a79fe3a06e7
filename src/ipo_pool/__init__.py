"""
IPO Pool Tracker (ipo-pool)

Tracks pooled IPO applications made through shared demat accounts. Records
allotment outcomes per pool, settles each pool's final amount after
commission, and splits it among the participants who funded the pool.

Money is pooled by a small group of people; this tool does no trading and
talks to no broker.
"""

__version__ = "0.1.0"
__author__ = "IPO Pool Tracker Team"
