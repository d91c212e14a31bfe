"""Services Layer — client, car, upload-link, mobile-upload and OCR orchestration.

Invariants:
    - Services receive repositories and adapters through their constructors
    - No FastAPI imports: routes translate HTTP into service calls

Design Decisions:
    - Client and car upload flows share one service parameterized by UploadFlowProfile
"""
