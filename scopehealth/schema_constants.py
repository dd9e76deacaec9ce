"""
Central contract constants for ScopeHealth reports.

Schema version and bundled schema filename are derived from one place so the
report writer and the validator can never disagree.
"""

SCHEMA_VERSION = "v1"

SCHEMA_RESOURCE_PACKAGE = "scopehealth.schemas"
SCHEMA_RESOURCE_NAME = f"scopehealth_report.schema.{SCHEMA_VERSION}.json"
