"""
Services package.

Business logic of the sale: stage ledger, referral accounting, exchange
routing, fund custody and the sale controller façade.
"""
