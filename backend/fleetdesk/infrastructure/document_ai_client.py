"""Document AI Client — Google Document AI `:process` over REST (httpx).

Invariants:
    - One POST per call: {"rawDocument": {"content": base64, "mimeType": ...}}
    - Returns {"text": str, "entities": list}; a body without `document` is an error
    - Transport failures and non-2xx responses raise DocumentAIError (never retried)

Design Decisions:
    - REST + bearer token instead of the gRPC SDK: httpx is already in the stack and
      the call is a single request/response
    - Timeout is configurable (DOCUMENT_AI_TIMEOUT_SECONDS); everything else uses defaults
"""

import base64
import logging

import httpx

from fleetdesk.config import Settings
from fleetdesk.core.errors import DocumentAIError

logger = logging.getLogger(__name__)


class DocumentAIClient:
    """Calls a Document AI processor and returns text and entities."""

    def __init__(self, settings: Settings):
        settings.require("gcp_project_id", "google_access_token")
        self.project_id = settings.gcp_project_id
        self.location = settings.gcp_location
        self.access_token = settings.google_access_token
        self.timeout = settings.document_ai_timeout_seconds

    def _endpoint(self, processor_id: str) -> str:
        return (
            f"https://{self.location}-documentai.googleapis.com/v1/"
            f"projects/{self.project_id}/locations/{self.location}/"
            f"processors/{processor_id}:process"
        )

    async def process(self, content: bytes, mime_type: str, processor_id: str) -> dict:
        body = {
            "rawDocument": {
                "content": base64.b64encode(content).decode(),
                "mimeType": mime_type or "image/jpeg",
            },
        }
        headers = {"Authorization": f"Bearer {self.access_token}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self._endpoint(processor_id), json=body, headers=headers,
                )
        except httpx.HTTPError as e:
            logger.error(f"Document AI request failed: {e}")
            raise DocumentAIError(str(e))

        if response.status_code >= 400:
            logger.error(
                f"Document AI returned {response.status_code}: {response.text[:500]}",
            )
            raise DocumentAIError(
                f"processor {processor_id} returned {response.status_code}",
                status_code=response.status_code,
            )

        document = response.json().get("document")
        if not document:
            raise DocumentAIError("Document AI returned no document")
        return {
            "text": document.get("text", ""),
            "entities": document.get("entities", []),
        }
