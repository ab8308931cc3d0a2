"""
Licenses module - License issuance and validation.

This module handles:
- License and LicenseBrand entities and domain logic
- Credential generation (license keys, access passwords)
- License lifecycle (issue, assign, activate, deactivate, suspend, revoke)
- Access validation with access and device ceilings
"""
