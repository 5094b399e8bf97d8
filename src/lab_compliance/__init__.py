"""
Lab Compliance Engine
======================
Compliance evaluation for laboratory quality management.

Interprets free-text acceptance criteria against measured results
and rolls test outcomes up into parameter and specification
compliance states.
"""

__version__ = "0.1.0"
