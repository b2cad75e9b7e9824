from .submission import ContactSubmission

__all__ = ["ContactSubmission"]
