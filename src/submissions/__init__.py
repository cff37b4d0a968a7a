"""
Submission core: parsing, normalization, classification, validation and
RPA task status tracking for multi-carrier auto-submission.

Everything here is free of network I/O. Outbound carrier calls live in
src/integrations; HTTP handlers live in src/api.
"""
