"""
Ticket AI
=========

Support-ticket tracker with LLM triage and skill-based assignment.
"""

__version__ = "1.0.0"
