"""
Cost reporting orchestrator.

Resolves cost queries against a result cache, generates narrated PDF
reports synchronously or through the deferred report ledger, and
delivers them by URL or email.
"""

__version__ = '1.0.0'
