"""Mail Composer - templated drafts, sanitized previews and validated sends"""

__version__ = "1.0.0"
