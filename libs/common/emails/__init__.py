"""
SXO6LUXE Email Package.

Modules:
- core: send_email via the Resend API
- client: EmailClient for invoking the send-email function

Templates live in services/communications_service/templates/.
Other services should use EmailClient (client.py), not import templates
directly.
"""
