"""
StreetPaws Backend — Services Layer
=====================================

Service Inventory:
    - AnimalService: Animal/vaccination rules, helplines, stats
    - FileService:   Photo upload validation, storage, and cleanup
    - QRService:     QR identity tags and printable tag pages
"""
