"""Authentication and authorization for MailFlow.

Tokens are issued by the identity provider; this package only verifies them,
loads the matching user profile and enforces the role hierarchy.
"""
