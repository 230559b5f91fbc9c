"""
Pydantic schemas for progression-service

All schemas use Pydantic v2 syntax with ConfigDict
"""
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator
from typing import Optional, Dict, List, Literal
from datetime import date, datetime, timezone

from app.logic.progression import MAX_ENERGY, MAX_HUNGER, MAX_REPUTATION, calculate_level


# ============= ENUMS AND CONSTANTS =============

ShopCategory = Literal["powerup", "cosmetic", "content", "food"]
Rarity = Literal["comum", "raro", "epico", "lendario"]
ActivityType = Literal["quiz", "case"]


# ============= PLAYER STATE =============

class PlayerStats(BaseModel):
    """Lifetime counters. All monotonic except best_streak, which is a max."""
    cases_completed: int = Field(default=0, ge=0)
    quizzes_taken: int = Field(default=0, ge=0)
    total_correct_answers: int = Field(default=0, ge=0)
    best_streak: int = Field(default=0, ge=0)
    total_study_time: int = Field(default=0, ge=0, description="Minutes studied")


class PlayerState(BaseModel):
    """
    Durable player state. Only ProgressionStore mutates it.

    `level` is computed from `xp` on every read and is never stored.
    """
    energy: int = Field(default=MAX_ENERGY, ge=0, le=MAX_ENERGY)
    hunger: int = Field(default=0, ge=0, le=MAX_HUNGER)
    coins: int = Field(default=0, ge=0)
    xp: int = Field(default=0, ge=0)
    streak: int = Field(default=0, ge=0)
    reputation: int = Field(default=3, ge=0, le=MAX_REPUTATION)
    stats: PlayerStats = Field(default_factory=PlayerStats)
    owned_items: List[str] = Field(default_factory=list)
    unlocked_professions: List[str] = Field(default_factory=lambda: ["academic"])
    unlocked_by_level: Dict[str, List[str]] = Field(default_factory=dict)
    last_rest_at: Optional[datetime] = None
    last_played_on: Optional[date] = None
    last_hunger_update_at: Optional[datetime] = None
    study_started_at: Optional[datetime] = None

    @computed_field
    @property
    def level(self) -> int:
        return calculate_level(self.xp)

    @property
    def current_profession(self) -> Optional[str]:
        return self.unlocked_professions[-1] if self.unlocked_professions else None

    @field_validator('owned_items', 'unlocked_professions')
    @classmethod
    def drop_duplicates(cls, v: List[str]) -> List[str]:
        """Keep first occurrence, preserve order"""
        return list(dict.fromkeys(v))

    @field_validator('last_rest_at', 'last_hunger_update_at', 'study_started_at')
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Naive timestamps are treated as UTC"""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    model_config = ConfigDict(extra="ignore")


# ============= STATIC CATALOGS =============

class Badge(BaseModel):
    """Rank label derived from level"""
    id: str
    name: str
    level: int = Field(..., ge=1, description="Minimum player level")
    description: str

    model_config = ConfigDict(frozen=True)


class ShopItem(BaseModel):
    """Shop catalog entry. Food is consumable, everything else is durable."""
    id: str
    name: str
    description: str = ""
    price: int = Field(..., ge=0)
    category: ShopCategory
    rarity: Rarity = "comum"
    hunger_restore: int = Field(default=0, ge=0)
    energy_bonus: int = Field(default=0, ge=0)

    @property
    def is_consumable(self) -> bool:
        return self.category == "food"

    model_config = ConfigDict(frozen=True)


class Achievement(BaseModel):
    """Achievement progress, derived from state on every read"""
    id: str
    name: str
    description: str
    progress: int = Field(..., ge=0)
    threshold: int = Field(..., gt=0)

    @computed_field
    @property
    def unlocked(self) -> bool:
        return self.progress >= self.threshold


class Profession(BaseModel):
    """Node of the career tree"""
    id: str
    label: str
    level_required: int = Field(..., ge=1)
    parent_id: Optional[str] = None

    model_config = ConfigDict(frozen=True)


# ============= API REQUESTS =============

class SpendEnergyRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Energy to spend, hunger penalty already applied")


class StartActivityRequest(BaseModel):
    activity: ActivityType = Field(default="quiz", description="Activity being started")
    base_cost: Optional[int] = Field(
        default=None, gt=0,
        description="Override base energy cost (defaults per activity from settings)"
    )


class AdvanceHungerRequest(BaseModel):
    elapsed_minutes: int = Field(..., ge=0)


class FeedRequest(BaseModel):
    hunger_restore: int = Field(default=0, ge=0)
    energy_bonus: int = Field(default=0, ge=0)


class AmountRequest(BaseModel):
    amount: int = Field(..., gt=0)


class QuizResultRequest(BaseModel):
    correct: int = Field(..., ge=0)
    total: int = Field(..., gt=0)
    reputation_delta: int = Field(default=0, description="Decided by the case evaluator")

    @model_validator(mode='after')
    def validate_correct_within_total(self) -> 'QuizResultRequest':
        if self.correct > self.total:
            raise ValueError(f"correct ({self.correct}) cannot exceed total ({self.total})")
        return self


class PurchaseRequest(BaseModel):
    item_id: str = Field(..., min_length=1)


class StreakUpdateRequest(BaseModel):
    played_today: bool = False
    today: Optional[date] = Field(default=None, description="Player's local day; defaults to server clock")


class UnlockProfessionRequest(BaseModel):
    profession_id: str = Field(..., min_length=1)


# ============= API RESPONSES =============

class PlayerStateResponse(BaseModel):
    """Full read surface plus derived values"""
    user_id: str
    energy: int
    hunger: int
    coins: int
    xp: int
    level: int
    streak: int
    reputation: int
    stats: PlayerStats
    owned_items: List[str]
    unlocked_professions: List[str]
    current_profession: Optional[str] = None
    last_rest_at: Optional[datetime] = None
    rest_available_at: Optional[datetime] = Field(None, description="None when rest is available now")
    is_studying: bool = False
    xp_progress: Dict[str, int] = Field(default_factory=dict)
    can_play: bool
    is_hungry: bool
    current_badge: Badge
    next_badge: Optional[Badge] = None
    badge_progress: int = Field(..., ge=0, le=100)
    accuracy_rate: int = Field(..., ge=0)


class ActionResponse(BaseModel):
    """Result of a guarded operation. Guard failures are success=False, not errors."""
    success: bool
    reason: Optional[str] = None
    state: PlayerStateResponse


class EarnXpResponse(BaseModel):
    new_level: int
    leveled_up: bool
    state: PlayerStateResponse


class StudyResultResponse(BaseModel):
    minutes: int = Field(..., ge=0)
    coins_earned: int = Field(..., ge=0)
    xp_earned: int = Field(..., ge=0)
    state: PlayerStateResponse
