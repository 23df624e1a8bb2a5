"""
Services package for the Blood Stock Ledger.
"""
