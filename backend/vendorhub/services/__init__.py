# Services package init
"""
VendorHub Media Backend — Services Layer
==========================================

Service Inventory:
    - data_url.py:       data:<mime>;base64 codec
    - file_service.py:   Upload size checks, storage, public URLs, cleanup
    - upload_service.py: Orchestrates size check → normalize → store → URL
"""
