# Routes package init
"""
BloomFrame Backend — API Routes Package
=========================================

Route Inventory:
    - invoice.py:  POST /api/invoice/preview        (invoice HTML)
    - email.py:    POST /api/email/invoice          (invoice PDF by email)
                   POST /api/email/recommendation   (recommendation email)
    - export.py:   GET  /api/export/orders.xlsx     (order workbook)
    - health.py:   GET  /health                     (service health check)

Routes stay thin: read the request, call a service, shape the response.
Every /api route requires a bearer token (see bloomframe.auth).
"""
