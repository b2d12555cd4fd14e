from improvepdf.rewrite.client_base import BaseRewriteClient
from improvepdf.rewrite.factory import RewriterFactory
from improvepdf.rewrite.rewriter import Rewriter

__all__ = ["BaseRewriteClient", "Rewriter", "RewriterFactory"]
