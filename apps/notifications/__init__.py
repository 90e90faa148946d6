"""Notifications app package.

Handles delivery of notifications: in-app notifications stored in the
database and best-effort transactional email sent through the Brevo HTTP
API. Email failures are logged and never interrupt the calling workflow.
"""
