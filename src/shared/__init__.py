"""
Shared Kernel Module
====================

Shared infrastructure used by every bounded context (currently the
natural-language query pipeline in ``nlp``).

DO NOT add query pipeline business logic to the shared kernel.
"""

__version__ = "1.0.0"
