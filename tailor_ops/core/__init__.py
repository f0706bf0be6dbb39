"""
Form rules shared by the shop screens.

- measurements: field catalogs, input sanitizing and validation
- billing: clothing catalog, invoice item text and WhatsApp links
"""
