"""
Career tree - profession catalog and unlock rules

The tree decides WHETHER a specialty may be unlocked; the store only
owns the append point (`ProgressionStore.unlock_profession`).

Rules:
1. Profession must exist in the tree
2. Player level >= level_required
3. Parent profession already unlocked
4. At most one specialty per level tier (the default profession doesn't count)
"""
from typing import Any, Dict, List, Optional, NamedTuple
import logging

from app.config import get_settings
from app.schemas import PlayerState, Profession

settings = get_settings()
logger = logging.getLogger(__name__)


PROFESSION_TREE: List[Dict[str, Any]] = [
    {
        'id': 'academic', 'label': 'Acadêmico', 'level_required': 1,
        'children': [
            {
                'id': 'clinica-medica', 'label': 'Clínica Médica', 'level_required': 3,
                'children': [
                    {
                        'id': 'cardiologia', 'label': 'Cardiologia', 'level_required': 8,
                        'children': [
                            {'id': 'hemodinamica', 'label': 'Hemodinâmica', 'level_required': 15},
                            {'id': 'eletrofisiologia', 'label': 'Eletrofisiologia', 'level_required': 15},
                            {'id': 'ic-avancada', 'label': 'Insuf. Cardíaca', 'level_required': 15},
                        ],
                    },
                    {
                        'id': 'pneumologia', 'label': 'Pneumologia', 'level_required': 8,
                        'children': [
                            {'id': 'broncoscopia', 'label': 'Broncoscopia', 'level_required': 15},
                            {'id': 'sono-pneumo', 'label': 'Medicina do Sono', 'level_required': 15},
                        ],
                    },
                    {'id': 'endocrino', 'label': 'Endocrinologia', 'level_required': 8},
                    {'id': 'infecto', 'label': 'Infectologia', 'level_required': 8},
                ],
            },
            {
                'id': 'cirurgia-geral', 'label': 'Cirurgia Geral', 'level_required': 3,
                'children': [
                    {
                        'id': 'cir-digestivo', 'label': 'Cir. Digestiva', 'level_required': 8,
                        'children': [
                            {'id': 'bariatrica', 'label': 'Bariátrica', 'level_required': 15},
                            {'id': 'coloprocto', 'label': 'Coloproctologia', 'level_required': 15},
                        ],
                    },
                    {'id': 'cir-vascular', 'label': 'Cir. Vascular', 'level_required': 8},
                    {'id': 'urologia', 'label': 'Urologia', 'level_required': 8},
                ],
            },
            {
                'id': 'pediatria', 'label': 'Pediatria', 'level_required': 3,
                'children': [
                    {'id': 'neo', 'label': 'Neonatologia', 'level_required': 8},
                    {'id': 'cardio-ped', 'label': 'Cardioped.', 'level_required': 8},
                ],
            },
            {
                'id': 'neurologia', 'label': 'Neurologia', 'level_required': 3,
                'children': [
                    {'id': 'neuro-vasc', 'label': 'Neuro Vascular', 'level_required': 8},
                    {'id': 'epilepsia', 'label': 'Epilepsia', 'level_required': 8},
                ],
            },
            {
                'id': 'emergencia', 'label': 'Emergência', 'level_required': 3,
                'children': [
                    {'id': 'trauma-emerg', 'label': 'Trauma', 'level_required': 8},
                    {'id': 'eco-emerg', 'label': 'POCUS/US', 'level_required': 8},
                ],
            },
            {
                'id': 'uti', 'label': 'Terapia Intensiva', 'level_required': 3,
                'children': [
                    {'id': 'uti-adulto', 'label': 'UTI Adulto', 'level_required': 8},
                    {'id': 'uti-neo', 'label': 'UTI Neonatal', 'level_required': 8},
                ],
            },
        ],
    },
]


def flatten_tree(nodes: List[Dict[str, Any]], parent_id: Optional[str] = None) -> List[Profession]:
    """Depth-first flattening, children carry their parent id"""
    flat: List[Profession] = []
    for node in nodes:
        flat.append(Profession(
            id=node['id'],
            label=node['label'],
            level_required=node['level_required'],
            parent_id=parent_id,
        ))
        flat.extend(flatten_tree(node.get('children', []), parent_id=node['id']))
    return flat


ALL_PROFESSIONS: Dict[str, Profession] = {p.id: p for p in flatten_tree(PROFESSION_TREE)}


def get_profession(profession_id: str) -> Optional[Profession]:
    return ALL_PROFESSIONS.get(profession_id)


class UnlockResult(NamedTuple):
    success: bool
    reason: Optional[str] = None


def check_profession_unlock(state: PlayerState, profession_id: str) -> UnlockResult:
    """
    Evaluate unlock rules for a profession

    Already-unlocked professions succeed (idempotent).

    Returns:
        UnlockResult with a reason code on failure:
        UNKNOWN_PROFESSION, LEVEL_TOO_LOW, PARENT_LOCKED, TIER_ALREADY_CHOSEN
    """
    if profession_id in state.unlocked_professions:
        return UnlockResult(True)

    profession = get_profession(profession_id)
    if profession is None:
        logger.warning(f"Unknown profession: {profession_id}")
        return UnlockResult(False, "UNKNOWN_PROFESSION")

    if state.level < profession.level_required:
        return UnlockResult(False, "LEVEL_TOO_LOW")

    if profession.parent_id and profession.parent_id not in state.unlocked_professions:
        return UnlockResult(False, "PARENT_LOCKED")

    tier = str(profession.level_required)
    chosen = [p for p in state.unlocked_by_level.get(tier, []) if p != settings.DEFAULT_PROFESSION]
    if chosen:
        return UnlockResult(False, "TIER_ALREADY_CHOSEN")

    return UnlockResult(True)
