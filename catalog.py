"""
Entity catalog for "Clear the Sector!"
Loads entity archetypes, their placement roles and the chained-effect
trigger table from a JSON or CSV resource.
"""

import csv
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from models import Entity

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = os.path.join(os.path.dirname(__file__), 'data', 'entities.json')

# Effect kinds understood by the fog-of-war controller
EFFECT_REVEAL = 'reveal'
EFFECT_NEUTRALIZE = 'neutralize'
KNOWN_EFFECTS = (EFFECT_REVEAL, EFFECT_NEUTRALIZE)

TRUE_STRINGS = {'true', '1', 'yes', 'y', 'on'}


class CatalogError(Exception):
    """Exception raised when a catalog resource cannot be read."""
    pass


@dataclass(frozen=True)
class Trigger:
    """Board effect fired when an archetype is defeated."""
    effect: str  # 'reveal' or 'neutralize'
    targets: Tuple[str, ...]  # Archetype ids the effect applies to
    part_bonus: int = 0  # Reward override granted by 'neutralize'


@dataclass(frozen=True)
class EntityCatalog:
    """Validated, ordered list of archetypes plus roles and triggers."""
    entities: Tuple[Entity, ...] = ()
    roles: Dict[str, str] = field(default_factory=dict)  # role name -> archetype id
    triggers: Dict[str, Trigger] = field(default_factory=dict)

    def get(self, entity_id: str) -> Optional[Entity]:
        for entity in self.entities:
            if entity.id == entity_id:
                return entity
        return None

    def role(self, name: str) -> Optional[Entity]:
        entity_id = self.roles.get(name)
        return self.get(entity_id) if entity_id else None

    @property
    def boss(self) -> Optional[Entity]:
        return self.role('boss')

    @property
    def guard(self) -> Optional[Entity]:
        return self.role('guard')

    @property
    def shield_surge_archetype(self) -> Optional[Entity]:
        for entity in self.entities:
            if entity.shield_surge:
                return entity
        return None

    def placeable(self) -> List[Entity]:
        """Archetypes placed by count, in catalog order."""
        reserved = {self.roles.get('boss'), self.roles.get('guard')}
        return [e for e in self.entities if e.id not in reserved and not e.shield_surge]

    def trigger_for(self, entity_id: str) -> Optional[Trigger]:
        return self.triggers.get(entity_id)

    def __len__(self) -> int:
        return len(self.entities)


def _optional_int(record: Dict[str, Any], key: str) -> Optional[int]:
    value = record.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    number = int(value)
    if number < 0:
        raise ValueError(f"{key} must be non-negative, got {number}")
    return number


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return bool(value)


def parse_entity_record(record: Dict[str, Any]) -> Entity:
    """
    Convert one catalog record into an Entity.

    Raises:
        ValueError: If `id` or `sprite_name` is missing or a number is invalid
    """
    entity_id = str(record.get('id') or '').strip()
    sprite = str(record.get('sprite_name') or '').strip()
    if not entity_id:
        raise ValueError("record has no id")
    if not sprite:
        raise ValueError(f"record {entity_id} has no sprite_name")

    alert = record.get('alert_text')
    return Entity(
        id=entity_id,
        name=str(record.get('name') or entity_id),
        sprite_ref=sprite,
        damage=_optional_int(record, 'damage') or 0,
        count=_optional_int(record, 'count') or 0,
        reward_parts_override=_optional_int(record, 'part_bonus'),
        shield_bonus=_optional_int(record, 'shield_bonus'),
        shield_surge=_as_bool(record.get('shield_surge', False)),
        alert_message=str(alert).strip() if alert and str(alert).strip() else None,
    )


def parse_triggers(raw: Dict[str, Any]) -> Dict[str, Trigger]:
    """Build the trigger table, dropping descriptors with an unknown effect."""
    triggers = {}
    for entity_id, descriptor in (raw or {}).items():
        effect = descriptor.get('effect')
        if effect not in KNOWN_EFFECTS:
            logger.warning("Ignoring trigger for %s: unknown effect %r", entity_id, effect)
            continue
        triggers[entity_id] = Trigger(
            effect=effect,
            targets=tuple(descriptor.get('targets', [])),
            part_bonus=int(descriptor.get('part_bonus', 0)),
        )
    return triggers


def build_catalog(records: Iterable[Dict[str, Any]], roles: Optional[Dict[str, str]] = None,
                  triggers: Optional[Dict[str, Any]] = None) -> EntityCatalog:
    """
    Validate records and assemble a catalog.

    Invalid records are rejected and logged; duplicate ids keep the first.
    """
    entities = []
    seen = set()
    for position, record in enumerate(records):
        try:
            entity = parse_entity_record(record)
        except (ValueError, TypeError) as e:
            logger.warning("Rejected catalog record %d: %s", position, e)
            continue
        if entity.id in seen:
            logger.warning("Rejected catalog record %d: duplicate id %s", position, entity.id)
            continue
        seen.add(entity.id)
        entities.append(entity)

    return EntityCatalog(
        entities=tuple(entities),
        roles=dict(roles or {}),
        triggers=parse_triggers(triggers or {}),
    )


def load_catalog(path: str = DEFAULT_CATALOG_PATH, roles: Optional[Dict[str, str]] = None,
                 triggers: Optional[Dict[str, Any]] = None) -> EntityCatalog:
    """
    Load a catalog from a JSON document or a CSV table.

    JSON documents carry `entities`, `roles` and `triggers`. CSV tables carry
    records only. Explicit `roles`/`triggers` arguments override the file's.

    Raises:
        CatalogError: If the file is missing, malformed or of unknown type
    """
    extension = os.path.splitext(path)[1].lower()
    try:
        with open(path, 'r', newline='') as f:
            if extension == '.json':
                document = json.load(f)
                records = document.get('entities', [])
                file_roles = document.get('roles', {})
                file_triggers = document.get('triggers', {})
            elif extension == '.csv':
                records = list(csv.DictReader(f))
                file_roles, file_triggers = {}, {}
            else:
                raise CatalogError(f"Unsupported catalog format: {path}")
    except (OSError, json.JSONDecodeError, csv.Error) as e:
        raise CatalogError(f"Could not read catalog {path}: {e}") from e

    catalog = build_catalog(
        records,
        roles=roles if roles is not None else file_roles,
        triggers=triggers if triggers is not None else file_triggers,
    )
    logger.info("Loaded %d entity archetypes from %s", len(catalog), path)
    return catalog
