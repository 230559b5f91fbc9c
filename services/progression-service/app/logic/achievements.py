"""
Achievements - threshold rules over lifetime counters

Nothing here is persisted: progress is recomputed from PlayerState on
every read, so changing a threshold never leaves stale unlocks behind.
"""
from typing import Dict, Any, List
import logging

from app.schemas import Achievement, PlayerState

logger = logging.getLogger(__name__)


# Achievement definitions
ACHIEVEMENTS: List[Dict[str, Any]] = [
    {
        'id': 'first-case',
        'name': 'Primeiro Diagnóstico',
        'description': 'Complete seu primeiro caso clínico',
        'metric': 'cases_completed',
        'threshold': 1,
    },
    {
        'id': 'case-master-10',
        'name': 'Residente',
        'description': 'Complete 10 casos clínicos',
        'metric': 'cases_completed',
        'threshold': 10,
    },
    {
        'id': 'case-master-50',
        'name': 'Especialista',
        'description': 'Complete 50 casos clínicos',
        'metric': 'cases_completed',
        'threshold': 50,
    },
    {
        'id': 'quiz-starter',
        'name': 'Mestre do Quiz',
        'description': 'Complete 10 quizzes',
        'metric': 'quizzes_taken',
        'threshold': 10,
    },
    {
        'id': 'quiz-expert',
        'name': 'Expert em Quiz',
        'description': 'Complete 50 quizzes',
        'metric': 'quizzes_taken',
        'threshold': 50,
    },
    {
        'id': 'correct-50',
        'name': 'Cérebro Afiado',
        'description': 'Acerte 50 questões',
        'metric': 'total_correct_answers',
        'threshold': 50,
    },
    {
        'id': 'correct-200',
        'name': 'Gênio Médico',
        'description': 'Acerte 200 questões',
        'metric': 'total_correct_answers',
        'threshold': 200,
    },
    {
        'id': 'streak-5',
        'name': 'Sequência de 5',
        'description': 'Mantenha um streak de 5 dias',
        'metric': 'best_streak',
        'threshold': 5,
    },
    {
        'id': 'streak-30',
        'name': 'Mês Dedicado',
        'description': 'Mantenha um streak de 30 dias',
        'metric': 'best_streak',
        'threshold': 30,
    },
    {
        'id': 'rich-1000',
        'name': 'Poupador',
        'description': 'Acumule 1000 MediMoedas',
        'metric': 'coins',
        'threshold': 1000,
    },
    {
        'id': 'rich-5000',
        'name': 'Rico',
        'description': 'Acumule 5000 MediMoedas',
        'metric': 'coins',
        'threshold': 5000,
    },
    {
        'id': 'level-5',
        'name': 'Progredindo',
        'description': 'Alcance o nível 5',
        'metric': 'level',
        'threshold': 5,
    },
    {
        'id': 'level-10',
        'name': 'Veterano',
        'description': 'Alcance o nível 10',
        'metric': 'level',
        'threshold': 10,
    },
    {
        'id': 'collector-5',
        'name': 'Colecionador',
        'description': 'Compre 5 itens na loja',
        'metric': 'owned_items',
        'threshold': 5,
    },
    {
        'id': 'specialty-3',
        'name': 'Multiespecialista',
        'description': 'Desbloqueie 3 especialidades',
        'metric': 'unlocked_professions',
        'threshold': 3,
    },
    {
        'id': 'study-60',
        'name': 'Estudioso',
        'description': 'Estude por 60 minutos',
        'metric': 'total_study_time',
        'threshold': 60,
    },
]


def metric_value(state: PlayerState, metric: str) -> int:
    """
    Current value of a metric

    Stats counters are read from state.stats, collections count their
    elements. Unknown metrics evaluate to 0.
    """
    if hasattr(state.stats, metric):
        return getattr(state.stats, metric)
    if metric == 'coins':
        return state.coins
    if metric == 'level':
        return state.level
    if metric == 'owned_items':
        return len(state.owned_items)
    if metric == 'unlocked_professions':
        return len(state.unlocked_professions)

    logger.warning(f"Unknown achievement metric: {metric}")
    return 0


def get_achievements(state: PlayerState) -> List[Achievement]:
    """Achievement list with progress = min(metric, threshold)"""
    return [
        Achievement(
            id=definition['id'],
            name=definition['name'],
            description=definition['description'],
            progress=min(metric_value(state, definition['metric']), definition['threshold']),
            threshold=definition['threshold'],
        )
        for definition in ACHIEVEMENTS
    ]


def get_achievement_progress(state: PlayerState) -> Dict[str, Any]:
    """
    Summary of unlocked achievements

    Returns:
        Dict with unlocked count, total, percentage and the full list
    """
    achievements = get_achievements(state)
    unlocked = sum(1 for a in achievements if a.unlocked)
    total = len(achievements)

    return {
        'unlocked': unlocked,
        'total': total,
        'percentage': int((unlocked / total) * 100) if total > 0 else 0,
        'achievements': achievements,
    }
