"""
Infrastructure Layer
=====================

Adapters for the external collaborators:
- database: async SQLAlchemy engine and sessions
- llm: chat completion clients for the triage model
- mail: SMTP delivery
- security: password hashing and access tokens
- events: background event delivery
"""
