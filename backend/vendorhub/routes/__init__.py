# Routes package init
"""
VendorHub Media Backend — API Routes Package
==============================================

Route Inventory:
    - uploads.py: POST /api/uploads           (multipart upload + normalize)
                  POST /api/uploads/resolve   (data URLs / URLs → public URLs)
    - health.py:  GET  /health                (service health check)

    Stored images are served by a StaticFiles mount at /uploads (main.py).

Routes stay thin: parse the request, call UploadService, shape the response.
"""
