"""Security tests for MailFlow

This module contains security-focused tests including:
- SQL injection prevention
- Authentication bypass attempts
"""
