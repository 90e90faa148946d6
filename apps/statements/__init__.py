"""Account statements app package.

Periodic account statements (PDF links) the back-office prepares for each
agency and sends by email; agencies read their own from the portal.
"""
