"""
Creature and roster models for the encounter generator.

A CreatureRecord is an immutable catalog entry. A MonsterInstance is one slot
in a generated roster: either a SingleMonster wrapping one record, or a
MountedPair combining a mount with its rider.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

ROLE_LEADER = 'leader'
ROLE_ELITE = 'elite'
ROLE_MINION = 'minion'
ROLE_PAIR = 'pair'
ROLE_DISMOUNTED = 'dismounted'

UNKNOWN = 'Unknown'


@dataclass(frozen=True)
class CreatureRecord:
    """
    A catalog creature.

    Attributes:
        name (str): Creature name, e.g. 'Goblin'
        cr (str): Challenge rating label, e.g. '1/4'
        type (str): Creature type used for naming themes ('Dragon', 'Rider', ...)
        theme (str): Catalog theme bucket the creature came from
    """
    name: str
    cr: str
    type: str = UNKNOWN
    theme: str = UNKNOWN

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CreatureRecord':
        return cls(
            name=str(data['name']),
            cr=str(data['cr']),
            type=data.get('type') or UNKNOWN,
            theme=data.get('theme') or UNKNOWN,
        )

    def to_dict(self) -> Dict[str, str]:
        return {'name': self.name, 'cr': self.cr, 'type': self.type, 'theme': self.theme}


@dataclass(frozen=True, kw_only=True)
class MonsterInstance(ABC):
    """
    Base class for one roster entry.

    Naming fields start empty and are attached by the naming engine, which
    returns new instances rather than mutating these.
    """
    xp: int
    role: Optional[str] = None
    creature_type_id: Optional[int] = None
    display_name: Optional[str] = None
    naming_style: Optional[str] = None
    name_type: Optional[str] = None
    traits: Tuple[str, ...] = field(default_factory=tuple)

    kind = 'monster'

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    @abstractmethod
    def cr(self) -> str:
        ...

    @property
    @abstractmethod
    def type(self) -> str:
        ...

    @property
    @abstractmethod
    def theme(self) -> str:
        ...

    def naming_base(self) -> Tuple[str, str]:
        """Return the (base name, creature type) used to build a display name."""
        return self.name, self.type

    def with_naming(self, display_name: str, naming_style: str, name_type: str, traits) -> 'MonsterInstance':
        return replace(
            self,
            display_name=display_name,
            naming_style=naming_style,
            name_type=name_type,
            traits=tuple(traits),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'kind': self.kind,
            'name': self.name,
            'cr': self.cr,
            'type': self.type,
            'theme': self.theme,
            'xp': self.xp,
            'role': self.role,
        }
        if self.creature_type_id is not None:
            data['creature_type_id'] = self.creature_type_id
        if self.display_name is not None:
            data['display_name'] = self.display_name
            data['naming_style'] = self.naming_style
            data['name_type'] = self.name_type
            data['traits'] = list(self.traits)
        return data


@dataclass(frozen=True, kw_only=True)
class SingleMonster(MonsterInstance):
    creature: CreatureRecord

    kind = 'single'

    @property
    def name(self) -> str:
        return self.creature.name

    @property
    def cr(self) -> str:
        return self.creature.cr

    @property
    def type(self) -> str:
        return self.creature.type

    @property
    def theme(self) -> str:
        return self.creature.theme


@dataclass(frozen=True, kw_only=True)
class MountedPair(MonsterInstance):
    """A rider on its mount, priced as the sum of both creatures' XP."""
    mount: CreatureRecord
    rider: CreatureRecord
    role: Optional[str] = ROLE_PAIR

    kind = 'pair'

    @property
    def name(self) -> str:
        return f"{self.rider.name} & {self.mount.name}"

    @property
    def cr(self) -> str:
        return f"{self.rider.cr}/{self.mount.cr}"

    @property
    def type(self) -> str:
        return f"{self.rider.type} & {self.mount.type}"

    @property
    def theme(self) -> str:
        return self.rider.theme

    def naming_base(self) -> Tuple[str, str]:
        return self.rider.name, self.rider.type

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['mount'] = self.mount.to_dict()
        data['rider'] = self.rider.to_dict()
        return data
