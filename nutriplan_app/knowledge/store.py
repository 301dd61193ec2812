"""In-memory knowledge base of scored food and recipe items."""
import logging
import math
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from nutriplan_app.core.errors import ItemNotFound, MalformedAttributeVector
from nutriplan_app.core.utils import split_list
from nutriplan_app.knowledge.inference import resolve_attributes
from nutriplan_app.schemas.enums import Dosha, TasteAxis
from nutriplan_app.schemas.models import KnowledgeItem

logger = logging.getLogger(__name__)

Predicate = Callable[[KnowledgeItem], bool]

# Flat nutrient columns picked up from CSV rows and flat JSON records
NUTRIENT_FIELDS = (
    'calories', 'protein', 'fat', 'carbohydrates', 'fiber',
    'sugars', 'sodium', 'cholesterol', 'magnesium',
)
LIST_FIELDS = (
    'tags', 'meal_types', 'seasons', 'contraindications', 'allergens',
    'dietary_flags', 'benefits',
)


def _blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def _text(value) -> str:
    # enum members (from model_dump) carry their text in .value
    return str(getattr(value, 'value', value)).strip()


def _parse_ingredient(entry) -> Dict[str, Any]:
    """Accept a dict or a "name, quantity, unit[, role]" string."""
    if isinstance(entry, Mapping):
        return dict(entry)
    parts = [p.strip() for p in str(entry).split(',')]
    data = {'name': parts[0]}
    if len(parts) > 1 and parts[1]:
        data['quantity'] = float(parts[1])
    if len(parts) > 2:
        data['unit'] = parts[2]
    if len(parts) > 3 and parts[3]:
        data['role'] = parts[3]
    return data


def _parse_ingredients(value) -> List[Dict[str, Any]]:
    if _blank(value):
        return []
    if isinstance(value, str):
        # CSV cell: entries separated by ';'
        value = [v for v in value.split(';') if v.strip()]
    return [_parse_ingredient(v) for v in value]


def _record_payload(record: Mapping) -> Dict[str, Any]:
    """Map a nested or flat raw record onto KnowledgeItem fields."""
    item_id = record.get('id', record.get('item_id'))
    payload: Dict[str, Any] = {
        'id': None if _blank(item_id) else str(item_id).strip(),
        'name': record.get('name') or (str(item_id) if not _blank(item_id) else None),
        'category': record.get('category') or '',
        'cuisine': None if _blank(record.get('cuisine')) else record.get('cuisine'),
        'source': record.get('source') or 'knowledge-base',
    }
    for field in LIST_FIELDS:
        value = record.get(field)
        payload[field] = split_list(None if _blank(value) else value)
    if not _blank(record.get('digestibility')):
        payload['digestibility'] = _text(record['digestibility']).lower()

    # attributes: nested under 'attributes', or at the top level of the record
    nested = record.get('attributes')
    source = nested if isinstance(nested, Mapping) else record
    # tastes: nested mapping or one column per axis
    tastes = source.get('tastes')
    if not isinstance(tastes, Mapping):
        tastes = {axis.value: source.get(axis.value) for axis in TasteAxis}
    payload_tastes = {}
    for key, value in tastes.items():
        axis = _text(key).lower()
        payload_tastes[axis] = 0.0 if _blank(value) else value

    attributes: Dict[str, Any] = {'tastes': payload_tastes}
    thermal = source.get('thermal', source.get('thermal_effect'))
    if not _blank(thermal):
        attributes['thermal'] = _text(thermal).lower()
    intensity = source.get('thermal_intensity')
    if not _blank(intensity):
        attributes['thermal_intensity'] = intensity
    dosha = source.get('dosha_effect')
    if not isinstance(dosha, Mapping):
        flat = {d.value: source.get(d.value) for d in Dosha}
        dosha = flat if any(not _blank(v) for v in flat.values()) else None
    if dosha is not None:
        attributes['dosha_effect'] = {k: (0.0 if _blank(v) else v) for k, v in dosha.items()}
    payload['attributes'] = attributes

    nutrients = record.get('nutrients')
    if not isinstance(nutrients, Mapping):
        nutrients = {f: record.get(f) for f in NUTRIENT_FIELDS}
    payload['nutrients'] = {k: float(v) for k, v in nutrients.items() if not _blank(v)}
    payload['ingredients'] = _parse_ingredients(record.get('ingredients'))

    metadata = dict(record.get('metadata') or {})
    if not _blank(record.get('preparation')):
        metadata.setdefault('preparation', record['preparation'])
    payload['metadata'] = metadata
    return payload


def _describe_errors(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = '.'.join(str(p) for p in err.get('loc', ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get('msg')))
    return '; '.join(parts)


def item_from_record(record) -> KnowledgeItem:
    """Validate one raw record and run the inference step on it.

    Raises ValueError (pydantic's ValidationError included) when the record
    cannot be turned into a valid item.
    """
    if isinstance(record, KnowledgeItem):
        item = record
    elif isinstance(record, Mapping):
        item = KnowledgeItem.model_validate(_record_payload(record))
    else:
        raise ValueError(f"record must be a mapping, got {type(record).__name__}")
    return item.model_copy(update={'attributes': resolve_attributes(item.attributes)})


def quarantine_entry(record, exc: Exception) -> MalformedAttributeVector:
    if isinstance(record, KnowledgeItem):
        item_id, name = record.id, record.name
    else:
        item_id = record.get('id', record.get('item_id')) if isinstance(record, Mapping) else None
        name = record.get('name') if isinstance(record, Mapping) else None
    reason = _describe_errors(exc) if isinstance(exc, ValidationError) else str(exc)
    return MalformedAttributeVector(
        item_id=None if _blank(item_id) else str(item_id),
        name=None if _blank(name) else str(name),
        reason=reason,
    )


class KnowledgeQuery:
    """Lazy, restartable view over the knowledge base's fixed item tuple."""

    def __init__(self, items: Tuple[KnowledgeItem, ...], predicates: Tuple[Predicate, ...] = ()):
        self._items = items
        self._predicates = predicates

    def where(self, predicate: Predicate) -> "KnowledgeQuery":
        return KnowledgeQuery(self._items, self._predicates + (predicate,))

    def __iter__(self) -> Iterator[KnowledgeItem]:
        for item in self._items:
            if all(pred(item) for pred in self._predicates):
                yield item

    def first(self) -> Optional[KnowledgeItem]:
        return next(iter(self), None)

    def count(self) -> int:
        return sum(1 for _ in self)

    def to_list(self) -> List[KnowledgeItem]:
        return list(self)


class KnowledgeBase:
    """Read-only collection of resolved knowledge items.

    Built once and passed explicitly to the components that need it.
    """

    def __init__(self, items: Iterable[KnowledgeItem] = (),
                 quarantine: Iterable[MalformedAttributeVector] = ()):
        self._items: Tuple[KnowledgeItem, ...] = tuple(items)
        self._index: Dict[str, KnowledgeItem] = {}
        for item in self._items:
            if item.id in self._index:
                raise ValueError(f"Duplicate knowledge item id: {item.id}")
            self._index[item.id] = item
        self._quarantine: Tuple[MalformedAttributeVector, ...] = tuple(quarantine)

    @classmethod
    def from_records(cls, records: Iterable) -> "KnowledgeBase":
        """Validate raw records, quarantining the ones that fail."""
        items: List[KnowledgeItem] = []
        seen = set()
        quarantine: List[MalformedAttributeVector] = []
        for record in records:
            try:
                item = item_from_record(record)
            except ValueError as exc:
                entry = quarantine_entry(record, exc)
                logger.warning("Quarantined item %s: %s", entry.item_id or entry.name, entry.reason)
                quarantine.append(entry)
                continue
            if item.id in seen:
                entry = MalformedAttributeVector(item_id=item.id, name=item.name,
                                                 reason="duplicate item id", kind="duplicate-id")
                logger.warning("Quarantined duplicate item id %s", item.id)
                quarantine.append(entry)
                continue
            seen.add(item.id)
            items.append(item)
        return cls(items, quarantine)

    def get(self, item_id: str) -> KnowledgeItem:
        try:
            return self._index[item_id]
        except KeyError:
            raise ItemNotFound(item_id) from None

    def find(self, item_id: str) -> Optional[KnowledgeItem]:
        return self._index.get(item_id)

    def query(self, predicate: Optional[Predicate] = None) -> KnowledgeQuery:
        q = KnowledgeQuery(self._items)
        return q.where(predicate) if predicate is not None else q

    @property
    def items(self) -> Tuple[KnowledgeItem, ...]:
        return self._items

    @property
    def ids(self) -> List[str]:
        return [item.id for item in self._items]

    @property
    def quarantine(self) -> Tuple[MalformedAttributeVector, ...]:
        return self._quarantine

    def categories(self) -> List[str]:
        return sorted({item.category for item in self._items if item.category})

    def quarantine_report(self) -> Dict[str, Any]:
        return {
            'loaded': len(self._items),
            'quarantined': len(self._quarantine),
            'entries': [entry.model_dump() for entry in self._quarantine],
        }

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[KnowledgeItem]:
        return iter(self._items)

    def __contains__(self, item_id) -> bool:
        return item_id in self._index
