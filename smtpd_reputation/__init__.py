"""
smtpd-reputation: behavioral trust scoring for SMTP client sessions.

Consumes session lifecycle events delivered by an OpenSMTPD filter
dispatcher, scores each session from authentication, TLS, DNS and envelope
outcomes, and keeps a bounded per-address history (or live per-resource
trust tables) so later sessions from the same network identity start from
an informed prior.
"""

__version__ = "0.1.0"
