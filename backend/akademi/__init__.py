"""
Akademi Backend
================

HTTP API for the Akademi scholarship platform: scholarship catalogue, user
registration with role-based administration, and Stripe payment intents.
"""

__version__ = "1.0.0"
