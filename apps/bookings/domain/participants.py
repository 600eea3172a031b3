"""
Tour Participants

Typed participant list for tour reservations. The list is stored as JSON on
the tour booking row; parsing and serialization happen only here.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Tuple

from apps.bookings.errors import InvalidInput
from shared.domain.base import ValueObject


@dataclass(frozen=True)
class EmergencyContact(ValueObject):
    name: str
    phone: str
    relationship: str = ''

    def to_dict(self) -> dict:
        return {'name': self.name, 'phone': self.phone, 'relationship': self.relationship}


@dataclass(frozen=True)
class Participant(ValueObject):
    name: str
    age: int
    emergency_contact: Optional[EmergencyContact] = None
    special_requirements: str = ''
    medical_conditions: str = ''

    def __post_init__(self):
        if not self.name or not str(self.name).strip():
            raise InvalidInput("Every participant needs a name.")
        if not isinstance(self.age, int) or isinstance(self.age, bool) or self.age < 0:
            raise InvalidInput(f"Invalid age for participant '{self.name}'.")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Participant':
        if not isinstance(data, Mapping):
            raise InvalidInput("Participant entries must be objects.")
        contact = data.get('emergency_contact', data.get('emergencyContact'))
        emergency_contact = None
        if contact:
            if not isinstance(contact, Mapping) or not contact.get('name') or not contact.get('phone'):
                raise InvalidInput("Emergency contact needs a name and a phone number.")
            emergency_contact = EmergencyContact(
                name=contact['name'],
                phone=contact['phone'],
                relationship=contact.get('relationship', ''),
            )
        try:
            age = int(data.get('age'))
        except (TypeError, ValueError):
            raise InvalidInput(f"Invalid age for participant '{data.get('name')}'.")
        return cls(
            name=data.get('name', ''),
            age=age,
            emergency_contact=emergency_contact,
            special_requirements=data.get('special_requirements', data.get('specialRequirements')) or '',
            medical_conditions=data.get('medical_conditions', data.get('medicalConditions')) or '',
        )

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'age': self.age,
            'emergency_contact': self.emergency_contact.to_dict() if self.emergency_contact else None,
            'special_requirements': self.special_requirements,
            'medical_conditions': self.medical_conditions,
        }


@dataclass(frozen=True)
class ParticipantList(ValueObject):
    participants: Tuple[Participant, ...] = field(default_factory=tuple)

    @classmethod
    def parse(cls, raw: Iterable[Any]) -> 'ParticipantList':
        """Build from dicts or Participant instances; anything else is InvalidInput."""
        if raw is None or isinstance(raw, (str, bytes, Mapping)):
            raise InvalidInput("Participants must be a list.")
        items = []
        for item in raw:
            items.append(item if isinstance(item, Participant) else Participant.from_dict(item))
        return cls(tuple(items))

    def __len__(self) -> int:
        return len(self.participants)

    def __iter__(self) -> Iterator[Participant]:
        return iter(self.participants)

    def to_json(self) -> List[dict]:
        return [participant.to_dict() for participant in self.participants]
