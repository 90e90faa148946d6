"""Core app package.

Cross-cutting back-office infrastructure shared by every domain app:
runtime-editable site settings, the user activity log, invalidation of
cached public pages and the health-check endpoint.
"""
