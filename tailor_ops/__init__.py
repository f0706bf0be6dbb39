"""
Tailor Ops Package

Back-office service for a tailoring shop:
- Customer records and body measurements
- Bill records and PDF invoices built from a Google Docs template
- WhatsApp hand-off of the shareable invoice link
"""

__version__ = "1.0.0"
__author__ = "Tailor Ops Team"

# Submodules are imported on demand so the Google and Supabase clients
# are only built when a service actually needs them
