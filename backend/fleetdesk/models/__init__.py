"""ORM Models — SQLAlchemy declarative models for all persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Client and Car are the parents; tokens, upload sessions and scans are scoped by entity_id

Design Decisions:
    - One file per concern, client/car variants side by side for locality
    - All models imported here so Base.metadata is complete before create_all / autogenerate
"""

from fleetdesk.models.client import Client  # noqa: F401
from fleetdesk.models.car import Car  # noqa: F401
from fleetdesk.models.upload_token import ClientUploadToken, CarUploadToken  # noqa: F401
from fleetdesk.models.upload_session import ClientUpload, CarUpload  # noqa: F401
from fleetdesk.models.document_scan import ClientDocumentScan, CarDocumentScan  # noqa: F401
