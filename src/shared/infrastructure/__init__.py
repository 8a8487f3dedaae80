"""
Infrastructure Layer
=====================

Low-level technical concerns:
- Structured logging setup
- Correlation IDs and latency timing
"""
