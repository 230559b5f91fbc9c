"""Progression Service - Business Logic Layer"""
from datetime import date, datetime, timedelta, timezone
from typing import Callable, List, NamedTuple, Optional
import logging
import threading

from app.config import get_settings
from app.logic import achievements as achievement_rules
from app.logic import badges as badge_rules
from app.logic.professions import UnlockResult, check_profession_unlock, get_profession
from app.logic.progression import (
    MAX_ENERGY,
    MAX_HUNGER,
    MAX_REPUTATION,
    accuracy_rate,
    calculate_level,
    calculate_streak,
    clamp,
    energy_cost,
    hunger_increase,
    is_hungry,
    next_rest_at,
    xp_progress_in_level,
)
from app.logic.shop_catalog import get_item_by_id
from app.schemas import Achievement, Badge, PlayerState, PlayerStats

settings = get_settings()
logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
CommitHook = Callable[[PlayerState], None]


class XpResult(NamedTuple):
    new_level: int
    leveled_up: bool


class PurchaseResult(NamedTuple):
    success: bool
    reason: Optional[str] = None


class ActivityResult(NamedTuple):
    success: bool
    reason: Optional[str] = None


class StudyResult(NamedTuple):
    minutes: int
    coins_earned: int
    xp_earned: int


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_player_state() -> PlayerState:
    """Estado inicial de un jugador recién creado."""
    return PlayerState(
        energy=MAX_ENERGY,
        hunger=0,
        coins=settings.INITIAL_COINS,
        reputation=settings.INITIAL_REPUTATION,
        unlocked_professions=[settings.DEFAULT_PROFESSION],
        unlocked_by_level={"1": [settings.DEFAULT_PROFESSION]},
    )


class ProgressionStore:
    """
    Dueño único del estado de progresión de un jugador.

    Every mutating method checks its guard and applies its effect while
    holding the same lock, so two rapid calls (double-clicked "Buy" or
    "Rest") can never both pass a guard. Guard failures return False (or a
    result with a reason code) and leave state untouched. Nothing here
    raises for bad amounts: they either fail the guard or are clamped.

    After each successful mutation the state snapshot is handed to
    `on_commit` (persistence). A failing hook is logged; the in-memory
    commit stands.
    """

    def __init__(
        self,
        state: Optional[PlayerState] = None,
        clock: Clock = utc_now,
        on_commit: Optional[CommitHook] = None,
        player_id: str = "",
    ):
        self._state = state.model_copy(deep=True) if state is not None else new_player_state()
        self._clock = clock
        self._on_commit = on_commit
        self._lock = threading.RLock()
        self.player_id = player_id
        self.rest_cooldown = timedelta(minutes=settings.REST_COOLDOWN_MINUTES)
        logger.debug(f"ProgressionStore ready for player '{player_id}'")

    # ── read surface ───────────────────────────────────────────────────

    @property
    def energy(self) -> int:
        return self._state.energy

    @property
    def hunger(self) -> int:
        return self._state.hunger

    @property
    def coins(self) -> int:
        return self._state.coins

    @property
    def xp(self) -> int:
        return self._state.xp

    @property
    def level(self) -> int:
        return calculate_level(self._state.xp)

    @property
    def streak(self) -> int:
        return self._state.streak

    @property
    def reputation(self) -> int:
        return self._state.reputation

    @property
    def stats(self) -> PlayerStats:
        return self._state.stats.model_copy()

    @property
    def owned_items(self) -> List[str]:
        return list(self._state.owned_items)

    @property
    def unlocked_professions(self) -> List[str]:
        return list(self._state.unlocked_professions)

    @property
    def last_rest_at(self) -> Optional[datetime]:
        return self._state.last_rest_at

    @property
    def is_studying(self) -> bool:
        return self._state.study_started_at is not None

    def snapshot(self) -> PlayerState:
        """Deep copy of the full state (safe to serialize or hand out)"""
        with self._lock:
            return self._state.model_copy(deep=True)

    def _commit(self) -> None:
        """Call with the lock held so snapshots reach storage in commit order."""
        if self._on_commit is None:
            return
        try:
            self._on_commit(self._state.model_copy(deep=True))
        except Exception as e:
            logger.error(f"Persisting state for player '{self.player_id}' failed, keeping in-memory commit: {e}")

    # ── energy ─────────────────────────────────────────────────────────

    def can_play(self) -> bool:
        """Enough energy to start any quiz or case."""
        return self._state.energy >= settings.MIN_ENERGY_TO_PLAY

    def energy_cost(self, base_cost: int) -> int:
        """Base cost with the hunger penalty applied."""
        return energy_cost(base_cost, self._state.hunger)

    def spend_energy(self, amount: int) -> bool:
        """
        Spend energy, all or nothing.

        `amount` must already include the hunger penalty (see energy_cost).
        """
        if amount <= 0:
            logger.warning(f"Ignoring non-positive energy spend for player '{self.player_id}': {amount}")
            return False

        with self._lock:
            if not self._spend_energy(amount):
                return False
            self._commit()
            return True

    def _spend_energy(self, amount: int) -> bool:
        if self._state.energy < amount:
            logger.info(f"Not enough energy for player '{self.player_id}': {self._state.energy} < {amount}")
            return False
        self._state.energy = clamp(self._state.energy - amount, 0, MAX_ENERGY)
        logger.info(f"Energy spent: -{amount} -> {self._state.energy}")
        return True

    def start_activity(self, base_cost: int) -> ActivityResult:
        """
        Gate and pay for a quiz or case in one step.

        Reasons: INVALID_COST, TOO_TIRED (below the play threshold),
        INSUFFICIENT_ENERGY (cannot afford the hunger-adjusted cost).
        """
        if base_cost <= 0:
            logger.warning(f"Invalid activity cost for player '{self.player_id}': {base_cost}")
            return ActivityResult(False, "INVALID_COST")

        with self._lock:
            if not self.can_play():
                logger.info(f"Player '{self.player_id}' too tired to play (energy={self._state.energy})")
                return ActivityResult(False, "TOO_TIRED")
            if not self._spend_energy(self.energy_cost(base_cost)):
                return ActivityResult(False, "INSUFFICIENT_ENERGY")
            self._commit()
            return ActivityResult(True)

    def rest(self) -> bool:
        """
        Refill energy, at most once per cooldown window.

        A call exactly at last_rest_at + cooldown succeeds.
        """
        with self._lock:
            now = self._clock()
            last = self._state.last_rest_at
            if last is not None and now - last < self.rest_cooldown:
                logger.info(f"Rest on cooldown for player '{self.player_id}' until {last + self.rest_cooldown}")
                return False

            before = self._state.energy
            self._state.energy = clamp(before + settings.REST_ENERGY_GAIN, 0, MAX_ENERGY)
            self._state.last_rest_at = now
            logger.info(f"Player '{self.player_id}' rested: energy {before} -> {self._state.energy}")
            self._commit()
            return True

    def now(self) -> datetime:
        """Current time on the store's clock."""
        return self._clock()

    def rest_available_at(self) -> Optional[datetime]:
        """When the next rest() will succeed, None if it would succeed now."""
        with self._lock:
            return next_rest_at(self._state.last_rest_at, self._clock())

    # ── hunger ─────────────────────────────────────────────────────────

    def advance_hunger(self, elapsed_minutes: float) -> None:
        """Hunger grows by full intervals only; partial windows don't count yet."""
        with self._lock:
            if self._advance_hunger(elapsed_minutes):
                self._commit()

    def _advance_hunger(self, elapsed_minutes: float) -> int:
        increase = hunger_increase(elapsed_minutes)
        if increase == 0:
            return 0

        before = self._state.hunger
        self._state.hunger = clamp(before + increase, 0, MAX_HUNGER)
        if is_hungry(self._state.hunger) and not is_hungry(before):
            logger.warning(f"Player '{self.player_id}' is hungry ({self._state.hunger}), energy costs doubled")
        return self._state.hunger - before

    def sync_hunger(self) -> int:
        """
        Apply hunger for the time elapsed since the last sync.

        Keeps the unfinished interval for the next call. Returns the
        hunger gained.
        """
        with self._lock:
            now = self._clock()
            anchor = self._state.last_hunger_update_at
            if anchor is None:
                self._state.last_hunger_update_at = now
                self._commit()
                return 0

            interval = settings.HUNGER_INTERVAL_MINUTES
            intervals = int((now - anchor).total_seconds() // (interval * 60))
            if intervals <= 0:
                return 0

            gained = self._advance_hunger(intervals * interval)
            self._state.last_hunger_update_at = anchor + timedelta(minutes=intervals * interval)
            self._commit()
            return gained

    def feed_character(self, hunger_restore: int, energy_bonus: int = 0) -> None:
        """Unconditional. Payment must already be settled by the caller."""
        with self._lock:
            self._feed(hunger_restore, energy_bonus)
            self._commit()

    def _feed(self, hunger_restore: int, energy_bonus: int) -> None:
        self._state.hunger = clamp(self._state.hunger - max(0, hunger_restore), 0, MAX_HUNGER)
        self._state.energy = clamp(self._state.energy + max(0, energy_bonus), 0, MAX_ENERGY)
        logger.info(f"Player '{self.player_id}' fed: hunger={self._state.hunger}, energy={self._state.energy}")

    # ── xp, coins and reputation ───────────────────────────────────────

    def earn_xp(self, amount: int) -> XpResult:
        """XP never decreases: negative amounts count as 0."""
        with self._lock:
            level_before = self.level
            self._state.xp += max(0, amount)
            new_level = self.level
            leveled_up = new_level > level_before
            if leveled_up:
                logger.info(f"Player '{self.player_id}' leveled up: {level_before} -> {new_level}")
            self._commit()
            return XpResult(new_level, leveled_up)

    def add_coins(self, amount: int) -> None:
        """Reward inflow. Negative amounts count as 0 (spending is spend_coins)."""
        with self._lock:
            self._state.coins += max(0, amount)
            self._commit()

    def spend_coins(self, amount: int) -> bool:
        """The only way currency leaves the account."""
        if amount < 0:
            logger.warning(f"Ignoring negative coin spend for player '{self.player_id}': {amount}")
            return False

        with self._lock:
            if not self._spend_coins(amount):
                return False
            self._commit()
            return True

    def _spend_coins(self, amount: int) -> bool:
        if amount > self._state.coins:
            logger.info(f"Insufficient coins for player '{self.player_id}': {self._state.coins} < {amount}")
            return False
        self._state.coins = max(0, self._state.coins - amount)
        return True

    def change_reputation(self, delta: int) -> None:
        with self._lock:
            self._change_reputation(delta)
            self._commit()

    def _change_reputation(self, delta: int) -> None:
        self._state.reputation = clamp(self._state.reputation + delta, 0, MAX_REPUTATION)

    # ── results ────────────────────────────────────────────────────────

    def record_quiz_result(self, correct: int, total: int, reputation_delta: int = 0) -> None:
        """
        Count a finished quiz.

        The accuracy -> reputation mapping belongs to the case evaluator;
        this only clamps the delta it decided. `correct` is clamped into
        [0, total].
        """
        total = max(0, total)
        correct = clamp(correct, 0, total)

        with self._lock:
            self._state.stats.quizzes_taken += 1
            self._state.stats.total_correct_answers += correct
            self._change_reputation(reputation_delta)
            logger.info(
                f"Quiz recorded for player '{self.player_id}': {correct}/{total}, "
                f"reputation={self._state.reputation}"
            )
            self._commit()

    def record_case_completion(self) -> None:
        with self._lock:
            self._state.stats.cases_completed += 1
            self._commit()

    def update_streak(self, played_today: bool = False, today: Optional[date] = None) -> None:
        """
        Daily streak transition.

        Args:
            played_today: Player already played today (no change, except a
                first-ever activity, which starts the streak at 1)
            today: Player's current day, defaults to the clock's date
        """
        with self._lock:
            today = today or self._clock().date()
            new_streak, changed = calculate_streak(
                self._state.streak, self._state.last_played_on, today, played_today
            )
            self._state.streak = new_streak
            self._state.last_played_on = today
            self._state.stats.best_streak = max(self._state.stats.best_streak, new_streak)
            if changed:
                logger.info(f"Player '{self.player_id}' streak is now {new_streak}")
            self._commit()

    # ── shop ───────────────────────────────────────────────────────────

    def buy_item(self, item_id: str, price: int) -> bool:
        """
        Buy a durable item. Owned items can never be bought twice.

        Food never goes through here (see purchase).
        """
        with self._lock:
            if self._buy_item(item_id, price) is not None:
                return False
            self._commit()
            return True

    def _buy_item(self, item_id: str, price: int) -> Optional[str]:
        if item_id in self._state.owned_items:
            logger.info(f"Player '{self.player_id}' already owns {item_id}")
            return "ALREADY_OWNED"

        item = get_item_by_id(item_id)
        if item is None:
            logger.warning(f"Attempt to buy unknown item {item_id}")
            return "UNKNOWN_ITEM"
        if item.is_consumable:
            logger.warning(f"Consumable {item_id} cannot enter the inventory")
            return "NOT_DURABLE"

        if price < 0:
            logger.warning(f"Invalid price {price} for {item_id}")
            return "INVALID_PRICE"
        if not self._spend_coins(price):
            return "INSUFFICIENT_COINS"

        self._state.owned_items.append(item_id)
        logger.info(f"Player '{self.player_id}' bought {item_id} for {price}")
        return None

    def purchase(self, item_id: str) -> PurchaseResult:
        """
        Catalog-driven purchase.

        Food is paid and eaten immediately; anything else goes to the
        inventory through buy_item rules.
        """
        item = get_item_by_id(item_id)
        if item is None:
            logger.warning(f"Attempt to purchase unknown item {item_id}")
            return PurchaseResult(False, "UNKNOWN_ITEM")

        with self._lock:
            if item.is_consumable:
                if not self._spend_coins(item.price):
                    return PurchaseResult(False, "INSUFFICIENT_COINS")
                self._feed(item.hunger_restore, item.energy_bonus)
            else:
                reason = self._buy_item(item.id, item.price)
                if reason is not None:
                    return PurchaseResult(False, reason)
            self._commit()
            return PurchaseResult(True)

    # ── career ─────────────────────────────────────────────────────────

    def unlock_profession(self, profession_id: str) -> bool:
        """
        Append point for the career system. Returns False if already unlocked.

        Eligibility is the caller's job (see unlock_specialty).
        """
        with self._lock:
            if profession_id in self._state.unlocked_professions:
                return False
            self._state.unlocked_professions.append(profession_id)
            logger.info(f"Player '{self.player_id}' unlocked profession {profession_id}")
            self._commit()
            return True

    def unlock_specialty(self, profession_id: str) -> UnlockResult:
        """Check the career tree rules and append, as one step."""
        with self._lock:
            result = check_profession_unlock(self._state, profession_id)
            if not result.success or profession_id in self._state.unlocked_professions:
                return result

            tier = str(get_profession(profession_id).level_required)
            self._state.unlocked_by_level.setdefault(tier, []).append(profession_id)
            self._state.unlocked_professions.append(profession_id)
            logger.info(f"Player '{self.player_id}' unlocked specialty {profession_id} (tier {tier})")
            self._commit()
            return result

    # ── study sessions ─────────────────────────────────────────────────

    def start_studying(self) -> bool:
        with self._lock:
            if self._state.study_started_at is not None:
                return False
            self._state.study_started_at = self._clock()
            self._commit()
            return True

    def stop_studying(self) -> StudyResult:
        """Close the session: XP per minute, coins per full hour fraction."""
        with self._lock:
            started = self._state.study_started_at
            if started is None:
                return StudyResult(0, 0, 0)

            minutes = max(0, int((self._clock() - started).total_seconds() // 60))
            coins_earned = minutes * settings.COINS_PER_STUDY_HOUR // 60
            xp_earned = minutes * settings.XP_PER_STUDY_MINUTE

            self._state.study_started_at = None
            self._state.coins += coins_earned
            self._state.xp += xp_earned
            self._state.stats.total_study_time += minutes
            logger.info(
                f"Player '{self.player_id}' studied {minutes} min: +{coins_earned} coins, +{xp_earned} XP"
            )
            self._commit()
            return StudyResult(minutes, coins_earned, xp_earned)

    # ── derived (never stored) ─────────────────────────────────────────

    def current_badge(self) -> Badge:
        return badge_rules.current_badge(self.level)

    def next_badge(self) -> Optional[Badge]:
        return badge_rules.next_badge(self.level)

    def badge_progress(self) -> int:
        return badge_rules.badge_progress(self.level)

    def achievements(self) -> List[Achievement]:
        return achievement_rules.get_achievements(self.snapshot())

    def accuracy_rate(self) -> int:
        return accuracy_rate(self._state.stats.total_correct_answers, self._state.stats.quizzes_taken)

    def xp_progress(self):
        return xp_progress_in_level(self._state.xp)

    def __repr__(self) -> str:
        return f"ProgressionStore(player='{self.player_id}', level={self.level}, energy={self.energy})"
