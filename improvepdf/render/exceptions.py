class RenderError(Exception):
    """Raised when the ebook cannot be rendered."""
