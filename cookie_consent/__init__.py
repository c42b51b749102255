"""Cookie consent management for the CMS: policies, consent decisions, script gating."""

__version__ = "1.0.0"
