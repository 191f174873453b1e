"""CareCheck package.

Caregiver attendance verification (NFC/QR taps) and monthly billing
reconciliation, organized by feature modules (challenges, attendance,
intervals, billing, ...) with a thin Flask controller layer and
service/repository layers underneath.
"""
