"""
Level badges - static catalog and derived queries

Badges are never stored per player: the current badge is always
recomputed from the level so catalog changes apply immediately.
"""
from typing import List, Optional
import logging

from app.schemas import Badge

logger = logging.getLogger(__name__)


# Ordered by level threshold (ascending)
BADGES: List[Badge] = [
    Badge(id='lvl1', name='Calouro', level=1,
          description='Você começou sua jornada médica!'),
    Badge(id='lvl5', name='Estudante', level=5,
          description='Dedicação aos estudos começa a aparecer'),
    Badge(id='lvl10', name='Acadêmico', level=10,
          description='Conhecimento básico consolidado'),
    Badge(id='lvl20', name='Interno', level=20,
          description='Experiência prática em desenvolvimento'),
    Badge(id='lvl30', name='Residente', level=30,
          description='Especialização em andamento'),
    Badge(id='lvl50', name='Especialista', level=50,
          description='Domínio comprovado na área'),
    Badge(id='lvl80', name='Mestre', level=80,
          description='Referência na especialidade'),
    Badge(id='lvl100', name='Lenda', level=100,
          description='O ápice da medicina!'),
]


def current_badge(level: int, badges: Optional[List[Badge]] = None) -> Badge:
    """
    Highest-threshold badge with threshold <= level

    Falls back to the lowest badge for levels below every threshold.
    """
    catalog = sorted(badges or BADGES, key=lambda b: b.level)
    unlocked = [b for b in catalog if b.level <= level]
    return unlocked[-1] if unlocked else catalog[0]


def next_badge(level: int, badges: Optional[List[Badge]] = None) -> Optional[Badge]:
    """Lowest-threshold badge with threshold > level, None at the top"""
    catalog = sorted(badges or BADGES, key=lambda b: b.level)
    return next((b for b in catalog if b.level > level), None)


def is_badge_unlocked(badge: Badge, level: int) -> bool:
    return level >= badge.level


def badge_progress(level: int, badges: Optional[List[Badge]] = None) -> int:
    """
    Percentage of the way from the current badge to the next one

    Returns 100 once the last badge is reached.

    Example:
        level 25 between Interno (20) and Residente (30) -> 50
    """
    current = current_badge(level, badges)
    upcoming = next_badge(level, badges)
    if upcoming is None:
        return 100

    span = upcoming.level - current.level
    done = max(0, level - current.level)
    return min(100, int(done * 100 / span))
