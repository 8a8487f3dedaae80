"""
NLP Query Module
================

Bounded Context for natural-language requests against the emergency
access ticketing subsystem.

Responsibilities:
- Classify free text into a discrete intent
- Extract and validate structured entities (ticket IDs, statuses, dates...)
- Gate intents by role and dispatch them to ticket operations
- Render a human-readable reply
"""

__version__ = "1.0.0"
