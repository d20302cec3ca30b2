"""
Triage Module
=============

Bounded context for LLM-based ticket triage.

Responsibilities:
- Prompt the triage model with a ticket's title and description
- Validate and coerce the model's answer into a TriageAssessment
- Provide the fallback assessment used when the model fails
"""
