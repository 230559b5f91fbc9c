"""
Progression Router

PATHS:
- GET  /api/v1/{user_id}/progression
- POST /api/v1/{user_id}/progression/energy/spend
- POST /api/v1/{user_id}/progression/activities/start
- POST /api/v1/{user_id}/progression/rest
- POST /api/v1/{user_id}/progression/hunger/advance
- POST /api/v1/{user_id}/progression/hunger/sync
- POST /api/v1/{user_id}/progression/feed
- POST /api/v1/{user_id}/progression/xp
- POST /api/v1/{user_id}/progression/coins
- POST /api/v1/{user_id}/progression/quiz-results
- POST /api/v1/{user_id}/progression/cases/complete
- POST /api/v1/{user_id}/progression/shop/purchase
- POST /api/v1/{user_id}/progression/streak
- POST /api/v1/{user_id}/progression/professions/unlock
- POST /api/v1/{user_id}/progression/study/start
- POST /api/v1/{user_id}/progression/study/stop
- GET  /api/v1/{user_id}/progression/badges
- GET  /api/v1/{user_id}/progression/achievements
- GET  /api/v1/shop/items

Guard failures (no energy, no coins, cooldown...) are 200 with success=false.
"""
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, HTTPException, Depends, Query
import logging

from app.schemas import (
    ActionResponse,
    AdvanceHungerRequest,
    AmountRequest,
    EarnXpResponse,
    FeedRequest,
    PlayerStateResponse,
    PurchaseRequest,
    QuizResultRequest,
    ShopItem,
    SpendEnergyRequest,
    StartActivityRequest,
    StreakUpdateRequest,
    StudyResultResponse,
    UnlockProfessionRequest,
)
from app.logic import badges as badge_rules
from app.logic.achievements import get_achievement_progress
from app.logic.progression import accuracy_rate, is_hungry, next_rest_at, xp_progress_in_level
from app.logic.shop_catalog import SHOP_ITEMS, get_items_by_category
from app.services.progression_service import ProgressionStore
from app.services.store_registry import StoreRegistry, get_registry
from app.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

router = APIRouter()

PREFIX = "/api/v1/{user_id}/progression"


def _state_response(user_id: str, store: ProgressionStore) -> PlayerStateResponse:
    """Build the read surface plus derived values from one consistent snapshot."""
    state = store.snapshot()
    now = store.now()
    return PlayerStateResponse(
        user_id=user_id,
        energy=state.energy,
        hunger=state.hunger,
        coins=state.coins,
        xp=state.xp,
        level=state.level,
        streak=state.streak,
        reputation=state.reputation,
        stats=state.stats,
        owned_items=state.owned_items,
        unlocked_professions=state.unlocked_professions,
        current_profession=state.current_profession,
        last_rest_at=state.last_rest_at,
        rest_available_at=next_rest_at(state.last_rest_at, now),
        is_studying=state.study_started_at is not None,
        xp_progress=xp_progress_in_level(state.xp),
        can_play=state.energy >= settings.MIN_ENERGY_TO_PLAY,
        is_hungry=is_hungry(state.hunger),
        current_badge=badge_rules.current_badge(state.level),
        next_badge=badge_rules.next_badge(state.level),
        badge_progress=badge_rules.badge_progress(state.level),
        accuracy_rate=accuracy_rate(state.stats.total_correct_answers, state.stats.quizzes_taken),
    )


def _action(user_id: str, store: ProgressionStore, success: bool, reason: Optional[str] = None) -> ActionResponse:
    return ActionResponse(success=success, reason=reason, state=_state_response(user_id, store))


@router.get(PREFIX, response_model=PlayerStateResponse)
def get_progression(user_id: str, registry: StoreRegistry = Depends(get_registry)):
    """Estado actual del jugador con valores derivados."""
    try:
        return _state_response(user_id, registry.get_store(user_id))
    except Exception as e:
        logger.error(f"Error getting progression for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# ============= ENERGY AND HUNGER =============

@router.post(f"{PREFIX}/energy/spend", response_model=ActionResponse)
def spend_energy(user_id: str, request: SpendEnergyRequest, registry: StoreRegistry = Depends(get_registry)):
    """Spend an already hunger-adjusted amount of energy."""
    try:
        store = registry.get_store(user_id)
        success = store.spend_energy(request.amount)
        return _action(user_id, store, success, None if success else "INSUFFICIENT_ENERGY")
    except Exception as e:
        logger.error(f"Error spending energy for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post(f"{PREFIX}/activities/start", response_model=ActionResponse)
def start_activity(user_id: str, request: StartActivityRequest, registry: StoreRegistry = Depends(get_registry)):
    """
    Gate and pay for a quiz or case.

    Base cost defaults to QUIZ_ENERGY_COST / CASE_ENERGY_COST; the hunger
    penalty is applied by the store.
    """
    try:
        store = registry.get_store(user_id)
        base_cost = request.base_cost
        if base_cost is None:
            base_cost = settings.CASE_ENERGY_COST if request.activity == "case" else settings.QUIZ_ENERGY_COST

        result = store.start_activity(base_cost)
        return _action(user_id, store, result.success, result.reason)
    except Exception as e:
        logger.error(f"Error starting {request.activity} for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post(f"{PREFIX}/rest", response_model=ActionResponse)
def rest(user_id: str, registry: StoreRegistry = Depends(get_registry)):
    try:
        store = registry.get_store(user_id)
        success = store.rest()
        return _action(user_id, store, success, None if success else "REST_ON_COOLDOWN")
    except Exception as e:
        logger.error(f"Error resting for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post(f"{PREFIX}/hunger/advance", response_model=ActionResponse)
def advance_hunger(user_id: str, request: AdvanceHungerRequest, registry: StoreRegistry = Depends(get_registry)):
    """Apply hunger for an externally measured duration."""
    try:
        store = registry.get_store(user_id)
        store.advance_hunger(request.elapsed_minutes)
        return _action(user_id, store, True)
    except Exception as e:
        logger.error(f"Error advancing hunger for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post(f"{PREFIX}/hunger/sync", response_model=ActionResponse)
def sync_hunger(user_id: str, registry: StoreRegistry = Depends(get_registry)):
    """Apply hunger for the time elapsed since the last sync (server clock)."""
    try:
        store = registry.get_store(user_id)
        store.sync_hunger()
        return _action(user_id, store, True)
    except Exception as e:
        logger.error(f"Error syncing hunger for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post(f"{PREFIX}/feed", response_model=ActionResponse)
def feed_character(user_id: str, request: FeedRequest, registry: StoreRegistry = Depends(get_registry)):
    """Unconditional feed. Paid food goes through /shop/purchase instead."""
    try:
        store = registry.get_store(user_id)
        store.feed_character(request.hunger_restore, request.energy_bonus)
        return _action(user_id, store, True)
    except Exception as e:
        logger.error(f"Error feeding character for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# ============= REWARDS AND RESULTS =============

@router.post(f"{PREFIX}/xp", response_model=EarnXpResponse)
def earn_xp(user_id: str, request: AmountRequest, registry: StoreRegistry = Depends(get_registry)):
    try:
        store = registry.get_store(user_id)
        result = store.earn_xp(request.amount)
        return EarnXpResponse(
            new_level=result.new_level,
            leveled_up=result.leveled_up,
            state=_state_response(user_id, store)
        )
    except Exception as e:
        logger.error(f"Error adding XP for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post(f"{PREFIX}/coins", response_model=ActionResponse)
def add_coins(user_id: str, request: AmountRequest, registry: StoreRegistry = Depends(get_registry)):
    try:
        store = registry.get_store(user_id)
        store.add_coins(request.amount)
        return _action(user_id, store, True)
    except Exception as e:
        logger.error(f"Error adding coins for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post(f"{PREFIX}/quiz-results", response_model=ActionResponse)
def record_quiz_result(user_id: str, request: QuizResultRequest, registry: StoreRegistry = Depends(get_registry)):
    try:
        store = registry.get_store(user_id)
        store.record_quiz_result(request.correct, request.total, request.reputation_delta)
        return _action(user_id, store, True)
    except Exception as e:
        logger.error(f"Error recording quiz for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post(f"{PREFIX}/cases/complete", response_model=ActionResponse)
def record_case_completion(user_id: str, registry: StoreRegistry = Depends(get_registry)):
    try:
        store = registry.get_store(user_id)
        store.record_case_completion()
        return _action(user_id, store, True)
    except Exception as e:
        logger.error(f"Error recording case for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post(f"{PREFIX}/streak", response_model=ActionResponse)
def update_streak(user_id: str, request: StreakUpdateRequest, registry: StoreRegistry = Depends(get_registry)):
    try:
        store = registry.get_store(user_id)
        store.update_streak(played_today=request.played_today, today=request.today)
        return _action(user_id, store, True)
    except Exception as e:
        logger.error(f"Error updating streak for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# ============= SHOP =============

@router.post(f"{PREFIX}/shop/purchase", response_model=ActionResponse)
def purchase(user_id: str, request: PurchaseRequest, registry: StoreRegistry = Depends(get_registry)):
    """
    Buy a catalog item.

    Food is eaten right away; durable items go to owned_items once.
    """
    try:
        store = registry.get_store(user_id)
        result = store.purchase(request.item_id)
        return _action(user_id, store, result.success, result.reason)
    except Exception as e:
        logger.error(f"Error purchasing {request.item_id} for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/api/v1/shop/items", response_model=List[ShopItem])
def list_shop_items(category: Optional[str] = Query(None, description="powerup, cosmetic, content or food")):
    if category is None:
        return SHOP_ITEMS
    return get_items_by_category(category)


# ============= CAREER =============

@router.post(f"{PREFIX}/professions/unlock", response_model=ActionResponse)
def unlock_profession(user_id: str, request: UnlockProfessionRequest, registry: StoreRegistry = Depends(get_registry)):
    """Unlock a specialty if the career tree allows it."""
    try:
        store = registry.get_store(user_id)
        result = store.unlock_specialty(request.profession_id)
        return _action(user_id, store, result.success, result.reason)
    except Exception as e:
        logger.error(f"Error unlocking {request.profession_id} for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# ============= STUDY SESSIONS =============

@router.post(f"{PREFIX}/study/start", response_model=ActionResponse)
def start_studying(user_id: str, registry: StoreRegistry = Depends(get_registry)):
    try:
        store = registry.get_store(user_id)
        success = store.start_studying()
        return _action(user_id, store, success, None if success else "ALREADY_STUDYING")
    except Exception as e:
        logger.error(f"Error starting study session for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post(f"{PREFIX}/study/stop", response_model=StudyResultResponse)
def stop_studying(user_id: str, registry: StoreRegistry = Depends(get_registry)):
    try:
        store = registry.get_store(user_id)
        result = store.stop_studying()
        return StudyResultResponse(
            minutes=result.minutes,
            coins_earned=result.coins_earned,
            xp_earned=result.xp_earned,
            state=_state_response(user_id, store)
        )
    except Exception as e:
        logger.error(f"Error stopping study session for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# ============= DERIVED =============

@router.get(f"{PREFIX}/badges")
def get_badges(user_id: str, registry: StoreRegistry = Depends(get_registry)) -> Dict[str, Any]:
    """Badge catalog with unlock flags, plus current/next badge."""
    try:
        level = registry.get_store(user_id).level
        return {
            "level": level,
            "current_badge": badge_rules.current_badge(level),
            "next_badge": badge_rules.next_badge(level),
            "progress": badge_rules.badge_progress(level),
            "badges": [
                {**badge.model_dump(), "unlocked": badge_rules.is_badge_unlocked(badge, level)}
                for badge in badge_rules.BADGES
            ],
        }
    except Exception as e:
        logger.error(f"Error getting badges for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get(f"{PREFIX}/achievements")
def get_achievements(user_id: str, registry: StoreRegistry = Depends(get_registry)) -> Dict[str, Any]:
    try:
        return get_achievement_progress(registry.get_store(user_id).snapshot())
    except Exception as e:
        logger.error(f"Error getting achievements for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
