"""
StreetPaws Backend — Request/Response Schemas
===============================================

Pydantic models for the JSON API. Fields are snake_case in Python and
camelCase on the wire (animalId, photoUrl, registeredAt, ...).
"""
