"""pushdesk: bulk push-notification delivery for the admin dashboard."""

__version__ = "0.1.0"
