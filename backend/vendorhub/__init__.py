"""
VendorHub Media Backend — Application Package Initializer
==========================================================

What: Marks the `vendorhub` directory as a Python package.
Who:  Used by uvicorn (`uvicorn vendorhub.main:app`), pytest, and the services.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (Upload orchestration)   │  ← decode → normalize → store → URL
    ├─────────────────────────────────────┤
    │    Imaging (Normalizer + Search)    │  ← pure transformations over buffers
    ├─────────────────────────────────────┤
    │        Storage (uploads dir)        │  ← files served back under /uploads
    └─────────────────────────────────────┘

    The imaging layer never touches the file system or the request; it takes
    bytes and returns bytes plus metadata. Everything with side effects lives
    in the services layer above it.
"""

__version__ = "1.0.0"
