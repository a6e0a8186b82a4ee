"""
Structured Data Extraction

Extracts structured data markup from a parsed page:
- JSON-LD (parsed, entities and @type values collected)
- Microdata (itemscope / itemtype)
- RDFa (typeof / vocab / property markers)

Also holds the schema.org property requirements used by the schema probe.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from seo_audit.constants import SOCIAL_PROPERTY_PREFIXES
from seo_audit.document import JSON_LD_SCRIPTS, MICRODATA_ITEMS, ParsedDocument
from seo_audit.models import SchemaValidation, StructuredDataItem

logger = logging.getLogger(__name__)

JSON_LD = "JSON-LD"
MICRODATA = "Microdata"
RDFA = "RDFa"


# Required and recommended properties per schema.org type
SCHEMA_REQUIREMENTS: Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...]]] = {
    'Product': (
        ('name', 'image', 'description'),
        ('offers', 'aggregateRating', 'review', 'brand', 'sku'),
    ),
    'Organization': (
        ('name',),
        ('url', 'logo', 'contactPoint', 'sameAs'),
    ),
    'Article': (
        ('headline', 'author'),
        ('datePublished', 'dateModified', 'image', 'publisher'),
    ),
    'LocalBusiness': (
        ('name', 'address'),
        ('telephone', 'openingHours', 'geo', 'url', 'priceRange', 'image', 'aggregateRating'),
    ),
    'Event': (
        ('name', 'startDate', 'location'),
        ('endDate', 'description', 'image', 'offers', 'performer', 'organizer'),
    ),
    'Recipe': (
        ('name', 'recipeIngredient', 'recipeInstructions'),
        ('image', 'author', 'prepTime', 'cookTime', 'totalTime',
         'recipeYield', 'nutrition', 'recipeCategory', 'recipeCuisine'),
    ),
    'JobPosting': (
        ('title', 'description', 'datePosted', 'hiringOrganization'),
        ('validThrough', 'employmentType', 'jobLocation', 'baseSalary', 'identifier'),
    ),
    'FAQPage': (
        ('mainEntity',),
        (),
    ),
    'HowTo': (
        ('name', 'step'),
        ('totalTime', 'estimatedCost', 'supply', 'tool'),
    ),
    'BreadcrumbList': (
        ('itemListElement',),
        (),
    ),
    'VideoObject': (
        ('name', 'description', 'thumbnailUrl', 'uploadDate'),
        ('duration', 'contentUrl', 'embedUrl', 'interactionStatistic'),
    ),
}

# Subtypes validated against their parent's requirements
SCHEMA_ALIASES = {
    'BlogPosting': 'Article',
    'NewsArticle': 'Article',
}


@dataclass
class Extraction:
    """Everything found in one page's structured data markup."""

    items: List[StructuredDataItem] = field(default_factory=list)
    schema_types: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)  # JSON-LD parse failures

    @property
    def formats(self) -> List[str]:
        formats = []
        for item in self.items:
            if item.format not in formats:
                formats.append(item.format)
        return formats

    def json_ld(self) -> List[StructuredDataItem]:
        return [item for item in self.items if item.format == JSON_LD]

    def entities(self) -> Iterator[dict]:
        """Top-level JSON-LD entities (lists and @graph flattened)."""
        for item in self.json_ld():
            yield from iter_entities(item.data)


def extract(document: ParsedDocument) -> Extraction:
    """Extract JSON-LD, Microdata and RDFa from a page."""
    extraction = Extraction()
    _extract_jsonld(document, extraction)
    _extract_microdata(document, extraction)
    _extract_rdfa(document, extraction)
    return extraction


def _extract_jsonld(document: ParsedDocument, extraction: Extraction) -> None:
    for script in document.select(JSON_LD_SCRIPTS):
        content = script.string or script.get_text()
        if not content or not content.strip():
            continue

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            extraction.errors.append(f"Invalid JSON-LD syntax: {str(e)[:100]}")
            continue

        types: List[str] = []
        collect_types(data, types)
        extraction.items.append(
            StructuredDataItem(format=JSON_LD, data=data, schema_types=tuple(types))
        )
        _merge(extraction.schema_types, types)


def _extract_microdata(document: ParsedDocument, extraction: Extraction) -> None:
    items = document.select(MICRODATA_ITEMS)
    if not items:
        return

    types: List[str] = []
    for item in items:
        itemtype = ParsedDocument.attribute(item, 'itemtype') or ''
        # e.g., "http://schema.org/Product" -> "Product"
        for url in itemtype.split():
            schema_type = url.rstrip('/').split('/')[-1]
            if schema_type and schema_type not in types:
                types.append(schema_type)

    extraction.items.append(
        StructuredDataItem(format=MICRODATA, count=len(items), schema_types=tuple(types))
    )
    _merge(extraction.schema_types, types)


def _is_rdfa_marker(element) -> bool:
    if element.has_attr('typeof') or element.has_attr('vocab'):
        return True
    prop = ParsedDocument.attribute(element, 'property')
    if prop is None:
        return False
    return not prop.strip().lower().startswith(SOCIAL_PROPERTY_PREFIXES)


def _extract_rdfa(document: ParsedDocument, extraction: Extraction) -> None:
    markers = [el for el in document.soup.find_all(True) if _is_rdfa_marker(el)]
    if not markers:
        return

    types: List[str] = []
    for element in markers:
        # RDFa can have multiple types space-separated
        for schema_type in (ParsedDocument.attribute(element, 'typeof') or '').split():
            if schema_type not in types:
                types.append(schema_type)

    extraction.items.append(
        StructuredDataItem(format=RDFA, count=len(markers), schema_types=tuple(types))
    )
    _merge(extraction.schema_types, types)


def _merge(target: List[str], values: List[str]) -> None:
    for value in values:
        if value not in target:
            target.append(value)


def collect_types(data, types: List[str]) -> None:
    """Recursively collect @type values, nested objects included."""
    if isinstance(data, dict):
        type_val = data.get('@type')
        if isinstance(type_val, str):
            if type_val not in types:
                types.append(type_val)
        elif isinstance(type_val, list):
            for t in type_val:
                if isinstance(t, str) and t not in types:
                    types.append(t)

        for value in data.values():
            if isinstance(value, (dict, list)):
                collect_types(value, types)

    elif isinstance(data, list):
        for item in data:
            collect_types(item, types)


def iter_entities(data) -> Iterator[dict]:
    """Yield top-level entities from a JSON-LD document."""
    if isinstance(data, list):
        for item in data:
            yield from iter_entities(item)
    elif isinstance(data, dict):
        if isinstance(data.get('@graph'), list):
            yield from iter_entities(data['@graph'])
        if '@type' in data:
            yield data


def entity_types(entity: dict) -> List[str]:
    type_val = entity.get('@type', [])
    if isinstance(type_val, str):
        return [type_val]
    if not isinstance(type_val, list):
        return []
    return [t for t in type_val if isinstance(t, str)]


def validate_entity(entity: dict, schema_type: str) -> Optional[SchemaValidation]:
    """Check an entity against the requirement table.

    Returns:
        SchemaValidation, or None when the type has no requirements
    """
    requirements = SCHEMA_REQUIREMENTS.get(SCHEMA_ALIASES.get(schema_type, schema_type))
    if requirements is None:
        return None

    required, recommended = requirements
    return SchemaValidation(
        schema_type=schema_type,
        missing_required=tuple(p for p in required if not entity.get(p)),
        missing_recommended=tuple(p for p in recommended if p not in entity),
    )
