"""propdesk - Prop-firm account risk & payout accounting

Reconstructs balance, drawdown floor, target progress, consistency and
payout projections for prop-firm evaluation accounts.
"""

__version__ = "0.1.0"
