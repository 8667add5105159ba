# results.py – stored predictions: history file, settlement from final scores, track record
from __future__ import annotations
import json
import logging
import os
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from markets import settle
from schema import Fixture, PickType, ResultType, Side

logger = logging.getLogger(__name__)

HISTORY_FILE = os.getenv("PICKS_HISTORY", "picks_history.json")


@dataclass
class HistoryStats:
    total: int
    wins: int
    losses: int
    voids: int
    pending: int
    win_rate: float   # % of settled non-void picks
    roi: float        # % over settled picks with odds, unit stakes


def settle_prediction(pred: Dict) -> Optional[ResultType]:
    """Result for a prediction record with homeScore/awayScore, if the score decides it."""
    hs, as_ = pred.get("homeScore"), pred.get("awayScore")
    if hs is None or as_ is None:
        return None
    sel = pred.get("selection")
    return settle(PickType(pred["pick"]), Side(sel) if sel else None, int(hs), int(as_))


def apply_result(pred: Dict) -> Dict:
    result = settle_prediction(pred)
    pred["result"] = result.value if result else None
    return pred


# ---------- history file ----------
def load_history(path: str = HISTORY_FILE) -> List[Dict]:
    if not path or not os.path.exists(path):
        return []
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def save_history(predictions: List[Dict], path: str = HISTORY_FILE) -> None:
    tmp = path + ".tmp"
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(predictions, f, ensure_ascii=False, indent=1)
    os.replace(tmp, path)


def remember(predictions: Iterable[Dict], path: str = HISTORY_FILE) -> List[Dict]:
    """Append predictions not stored yet (by id); stored ones are left untouched."""
    history = load_history(path)
    known = {p["id"] for p in history}
    added = [p for p in predictions if p["id"] not in known]
    if added:
        history.extend(added)
        save_history(history, path)
        logger.info("History: stored %d new prediction(s) in %s", len(added), path)
    return history


def pending_dates(predictions: Iterable[Dict]) -> List[str]:
    return sorted({p["matchDate"] for p in predictions if not p.get("result") and p.get("matchDate")})


def settle_pending(predictions: List[Dict], finished: Iterable[Fixture]) -> int:
    """Fill score and result of pending predictions from finished fixtures; returns how many got a result."""
    scores = {f.id: (f.home_goals, f.away_goals) for f in finished
              if f.home_goals is not None and f.away_goals is not None}
    settled = 0
    for p in predictions:
        if p.get("result") or p.get("matchId") not in scores:
            continue
        p["homeScore"], p["awayScore"] = scores[p["matchId"]]
        if apply_result(p)["result"]:
            settled += 1
    return settled


def record_stats(predictions: Iterable[Dict]) -> HistoryStats:
    preds: List[Dict] = list(predictions)
    results = [p.get("result") for p in preds]
    settled = [p for p, r in zip(preds, results) if r and r != ResultType.VOID.value]
    wins = [p for p in settled if p["result"] == ResultType.WIN.value]
    losses = [p for p in settled if p["result"] == ResultType.LOSS.value]

    with_odds = [p for p in settled if p.get("odds")]
    staked = len(with_odds)
    returned = sum(p["odds"] for p in with_odds if p["result"] == ResultType.WIN.value)
    roi = (returned - staked) / staked * 100 if staked else 0.0

    return HistoryStats(
        total=len(preds),
        wins=len(wins),
        losses=len(losses),
        voids=sum(1 for r in results if r == ResultType.VOID.value),
        pending=sum(1 for r in results if not r),
        win_rate=len(wins) / len(settled) * 100 if settled else 0.0,
        roi=roi,
    )
