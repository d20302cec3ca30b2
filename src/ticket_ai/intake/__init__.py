"""
Intake Module
=============

Background workflows driven by domain events.

Responsibilities:
- Ticket intake: triage, skill-based assignment, assignment email
- Signup: welcome email
"""
