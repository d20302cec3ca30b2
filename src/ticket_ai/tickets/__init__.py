"""
Tickets Module
==============

Bounded context for support tickets.

Responsibilities:
- Create tickets and hand them to the intake pipeline
- Role-scoped listing, reading and deletion
"""
