"""
HTTP routers - request/response marshalling over the gallery services.

- images.py: image listing, metadata, sync, rotation, people on an image
- people.py: people registry and person <-> image links
"""
