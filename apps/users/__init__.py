"""Users app package.

This module initializes the users app: the custom email-login user model
with back-office roles (super admin, admin, operator) and the agency role,
the per-section operator permissions and the authentication endpoints.
Use ``apps.users.models.CustomUser`` as the AUTH_USER_MODEL throughout the
project.
"""
