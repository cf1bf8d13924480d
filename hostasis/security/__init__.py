"""hostasis.security

Key material: address derivation, project key derivation, redaction.
"""
