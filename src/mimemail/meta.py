"""Package metadata."""

__app_name__ = "mimemail"
__version__ = "1.0.0"
__description__ = "Build MIME email messages with attachments and send them over SMTP."

__all__ = ["__app_name__", "__description__", "__version__"]
