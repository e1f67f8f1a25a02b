"""
Metadata validation.

validate_metadata never raises: every problem is reported as a blocking
error or a non-blocking warning in the returned ValidationResult.
"""

import json
import re
from typing import Any, Mapping, Sequence

from ..models import MetadataDocument, ValidationResult
from .schema import DOCUMENT_CHECKS, METADATA_RULES, FieldRule, Findings


def _matches_type(value: Any, rule: FieldRule) -> bool:
    if rule.types is None:
        return True
    # JSON booleans are neither numbers nor strings
    if isinstance(value, bool) and bool not in rule.types:
        return False
    return isinstance(value, rule.types)


def _apply_rule(rule: FieldRule, container: Mapping[str, Any], findings: Findings) -> None:
    value = container.get(rule.name)

    if value is None:
        if rule.required:
            findings.error(rule.missing, name=rule.name)
        return

    if not _matches_type(value, rule):
        findings.error(rule.invalid, name=rule.name, value=value)
        return

    if not rule.allow_blank and isinstance(value, str) and not value:
        findings.error(rule.missing, name=rule.name)
        return

    if rule.choices is not None and value not in rule.choices:
        findings.error(rule.choice_error, name=rule.name, value=value)

    if rule.pattern is not None and not re.fullmatch(rule.pattern, value):
        findings.error(rule.pattern_error, name=rule.name, value=value)

    if rule.items is not None:
        _apply_items(rule, value, findings)

    for check in rule.checks:
        check(value, container, findings)


def _apply_items(rule: FieldRule, items: Sequence[Any], findings: Findings) -> None:
    if not items and rule.empty_warning:
        findings.warn(rule.empty_warning, name=rule.name)

    for index, item in enumerate(items):
        item_findings = findings.at(index)
        if not isinstance(item, Mapping):
            item_findings.error(rule.item_invalid, name=rule.name)
            continue
        apply_rules(item, rule.items, item_findings)


def apply_rules(container: Mapping[str, Any], rules: Sequence[FieldRule],
                findings: Findings) -> None:
    """Walk a rule set over one mapping"""
    for rule in rules:
        _apply_rule(rule, container, findings)


def validate_metadata(metadata: Any) -> ValidationResult:
    """Validate a candidate metadata document (dict or MetadataDocument)"""
    if isinstance(metadata, MetadataDocument):
        metadata = metadata.to_dict()

    if not isinstance(metadata, Mapping):
        return ValidationResult(
            valid=False,
            errors=["Metadata must be a valid object"],
            warnings=[]
        )

    findings = Findings()
    apply_rules(metadata, METADATA_RULES, findings)

    for key, check in DOCUMENT_CHECKS:
        value = metadata.get(key)
        if isinstance(value, str):
            check(value, metadata, findings)

    return ValidationResult(
        valid=len(findings.errors) == 0,
        errors=findings.errors,
        warnings=findings.warnings
    )


def validate_metadata_json(text: str) -> ValidationResult:
    """Validate a metadata document given as JSON text"""
    try:
        metadata = json.loads(text)
    except (TypeError, ValueError) as e:
        return ValidationResult(
            valid=False,
            errors=[f"Invalid JSON: {e}"],
            warnings=[]
        )
    return validate_metadata(metadata)


def is_valid_metadata(metadata: Any) -> bool:
    return validate_metadata(metadata).valid
