"""
Shared Kernel Module
====================

Shared infrastructure used across all bounded contexts (users, tickets,
triage, intake).

Architecture Pattern: Modular Monolith
- Each module is a bounded context
- Shared kernel contains only generic infrastructure

DO NOT add ticket or user business logic to the shared kernel.
"""
