import logging
import os

import numpy as np
import torch
from sentence_transformers import SentenceTransformer

from vkb_core.config import settings
from vkb_core.errors import EmbeddingUnavailable

logger = logging.getLogger(__name__)

_model = None

def get_model():
    global _model
    if _model is None:
        # Explicitly set device to avoid meta tensor issues
        device = "cuda" if torch.cuda.is_available() else "cpu"
        try:
            _model = SentenceTransformer(settings.EMBEDDING_MODEL, device=device)
        except (NotImplementedError, RuntimeError) as e:
            error_msg = str(e).lower()
            if "meta tensor" in error_msg or "no data" in error_msg or "cannot copy out" in error_msg:
                # let SentenceTransformer pick the device itself
                try:
                    _model = SentenceTransformer(settings.EMBEDDING_MODEL)
                except Exception as e2:
                    cache_dir = os.environ.get("HF_HOME", os.path.expanduser("~/.cache/huggingface"))
                    raise EmbeddingUnavailable(
                        f"Failed to load model {settings.EMBEDDING_MODEL}. "
                        f"The model cache at {cache_dir}/hub/ is likely corrupted. "
                        f"Original error: {e}, Fallback error: {e2}"
                    ) from e2
            else:
                raise
        logger.info("Loaded embedding model %s on %s", settings.EMBEDDING_MODEL, device)
    return _model

def embed_texts(texts: list[str]) -> np.ndarray:
    model = get_model()
    vecs = model.encode(texts, normalize_embeddings=True, convert_to_numpy=True)
    # ensure 2D
    if vecs.ndim == 1:
        vecs = vecs.reshape(1, -1)
    return vecs.astype(np.float32)


class SentenceTransformerProvider:
    """Embedding provider backed by the process-wide SentenceTransformer model."""

    def embed(self, text: str) -> list[float]:
        vecs = embed_texts([text])
        if vecs.size == 0:
            raise EmbeddingUnavailable("Model returned no embedding")
        return vecs[0].tolist()
