"""Application services.

Modules:
- auth_service: passwords, sessions, caller resolution, admin promotion
- google_oauth: Google sign-in handshake and account linking
- activity_service: append-only activity log and notification feed
- email_service: assignment notifications over SMTP
- filesystem: content store for uploaded attachments
- stats_service: admin dashboard statistics

Import from the modules directly; this package re-exports nothing so the
services can depend on one another without import cycles.
"""
