"""
Users Module
============

Bounded context for accounts and credentials.

Responsibilities:
- Signup, login, logout with bcrypt password hashes and JWT access tokens
- Role and skill management by admins
- Resolving the caller of every API request
"""
