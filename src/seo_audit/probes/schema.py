"""Schema.org validation probe.

Reuses the structured data extraction of the structural analyzer and checks
each JSON-LD entity against the per-type property requirements. Product is
validated by the structural analyzer and skipped here.
"""

import logging
from typing import List

from seo_audit import structured_data
from seo_audit.models import Issue, SchemaResult, SchemaValidation, Scope, Severity
from seo_audit.probes.base import AuditContext, Probe

logger = logging.getLogger(__name__)

# Validated by the structured data scope
STRUCTURAL_SCHEMA_TYPES = ('Product',)


class SchemaProbe(Probe):

    scope = Scope.SCHEMA

    async def check(self, context: AuditContext) -> SchemaResult:
        extraction = structured_data.extract(context.document)
        validations: List[SchemaValidation] = []
        issues: List[Issue] = []

        for entity in extraction.entities():
            for schema_type in structured_data.entity_types(entity):
                if schema_type in STRUCTURAL_SCHEMA_TYPES:
                    continue
                validation = structured_data.validate_entity(entity, schema_type)
                if validation is None:
                    continue
                validations.append(validation)

                if validation.missing_required:
                    issues.append(Issue(
                        type=f'incomplete_{schema_type.lower()}_schema',
                        severity=Severity.MEDIUM,
                        message=(
                            f'{schema_type} schema missing required properties: '
                            f'{", ".join(validation.missing_required)}'
                        ),
                        scope=self.scope,
                        details=validation.missing_required,
                    ))

        return SchemaResult(
            has_schema=bool(extraction.items),
            types=tuple(extraction.schema_types),
            validations=tuple(validations),
            issues=tuple(issues),
        )
