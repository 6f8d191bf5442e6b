"""Repository functions for the sync store.

Each function takes the store handle as its first argument.
"""
