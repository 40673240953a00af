from vkb_engine.embeddings.resolver import EmbeddingProvider, EmbeddingResolver, get_default_resolver

__all__ = ["EmbeddingProvider", "EmbeddingResolver", "get_default_resolver"]
