"""
API routes.

- templates: saved templates CRUD, import/export
- qr: NBS QR API proxy
- language: interface language + notifications
"""
