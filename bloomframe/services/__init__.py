# Services package init
"""
BloomFrame Backend — Services Layer
=====================================

Service Inventory:
    - invoice_builder:    payload → invoice view model (pure)
    - TemplateService:    view model → HTML, with staged failure reporting
    - PdfService:         HTML → PDF via an external converter process
    - MailService:        SMTP delivery with attachments
    - EmailLogService:    best-effort audit records of sent emails
    - EmailService:       invoice and recommendation email workflows
    - export_service:     filtered order export to an XLSX workbook
"""
