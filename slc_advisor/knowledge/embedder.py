"""Query embeddings via Amazon Titan on AWS Bedrock."""

import json
import logging
import os
from functools import lru_cache

import boto3
from botocore.config import Config

from slc_advisor.errors import UpstreamError

logger = logging.getLogger(__name__)


class TitanEmbedder:
    """Generate embeddings using Amazon Titan via AWS Bedrock.

    Uses amazon.titan-embed-text-v2:0, which produces 1024-dimension vectors.
    """

    MODEL_ID = "amazon.titan-embed-text-v2:0"
    EMBEDDING_DIMENSION = 1024
    MAX_CHARS = 8192 * 4

    def __init__(self, region: str | None = None, profile: str | None = None, client=None):
        """Initialize the embedder.

        Args:
            region: AWS region for Bedrock. Defaults to AWS_REGION env var.
            profile: AWS profile to use. Defaults to AWS_PROFILE env var.
            client: Pre-built bedrock-runtime client (skips session setup)
        """
        self.region = region or os.environ.get("AWS_REGION", "us-east-1")
        self.profile = profile or os.environ.get("AWS_PROFILE")

        if client is None:
            config = Config(
                retries={"max_attempts": 3, "mode": "adaptive"},
                read_timeout=30,
                connect_timeout=10,
            )
            session_kwargs = {}
            if self.profile:
                session_kwargs["profile_name"] = self.profile
            client = boto3.Session(**session_kwargs).client(
                "bedrock-runtime",
                region_name=self.region,
                config=config,
            )
        self.client = client

        logger.info(f"TitanEmbedder initialized with region={self.region}")

    def embed(self, text: str) -> list[float]:
        """Embed one text.

        Raises:
            ValueError: If the text is empty
            UpstreamError: If the Bedrock call fails
        """
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")

        if len(text) > self.MAX_CHARS:
            logger.warning(f"Text truncated from {len(text)} to {self.MAX_CHARS} chars for embedding")
            text = text[: self.MAX_CHARS]

        try:
            response = self.client.invoke_model(
                modelId=self.MODEL_ID,
                body=json.dumps({"inputText": text}),
                contentType="application/json",
                accept="application/json",
            )
            embedding = json.loads(response["body"].read())["embedding"]
        except Exception as e:
            logger.error(f"Failed to generate embedding: {e}")
            raise UpstreamError(f"Embedding failed: {e}") from e

        logger.debug(f"Generated embedding with {len(embedding)} dimensions")
        return embedding

    @property
    def dimension(self) -> int:
        return self.EMBEDDING_DIMENSION


@lru_cache(maxsize=1)
def get_embedder() -> TitanEmbedder:
    """Cached embedder so the Bedrock client is reused."""
    return TitanEmbedder()
