"""
Computer opponent (always plays Black) and move hints (for White).
----

Scores are from Black's point of view: positive is good for Black.

Difficulty tiers:
* easy: captured material plus a bit of noise, pick any of the 5 best moves
* medium: captured material, positional gain and a damped evaluation of the resulting board, pick any of the 3 best
* hard: depth 2 minimax with alpha-beta pruning below every candidate move, pick the best

NOTE: The search only knows about moves and ranged attacks. Swaps, mystery boxes and revivals are out of its reach.
"""

import logging
import math
import random
from dataclasses import dataclass
from typing import Optional

from src.core.shared_types import Color, Difficulty, PieceType
from src.tactics.board import Board
from src.tactics.moves import (
    MoveResult,
    get_valid_attacks,
    get_valid_moves,
    is_monarch_threatened,
    make_move,
    resolves_as_attack,
)
from src.tactics.narcs import Narc
from src.tactics.pieces import Piece
from src.tactics.position import BoardSize, Position

logger = logging.getLogger("fantasy_tactics.bot")

PIECE_VALUES: dict[PieceType, int] = {
    PieceType.HOPLITE: 100,
    PieceType.PALADIN: 320,
    PieceType.CHARIOT: 330,
    PieceType.BOMBER: 340,
    PieceType.WARLOCK: 350,
    PieceType.NECROMANCER: 400,
    PieceType.RAM_TOWER: 500,
    PieceType.DUCHESS: 900,
    PieceType.MONARCH: 20000,
}

BOT_COLOR = Color.BLACK
SEARCH_DEPTH = 2
EASY_TOP_K = 5
MEDIUM_TOP_K = 3
EASY_JITTER = 10
EASY_THREAT_BONUS = 30
THREAT_BONUS = 50
MONARCH_CENTER_MULTIPLIER = -10
CENTER_MULTIPLIER = 20


@dataclass(frozen=True)
class CandidateMove:
    from_pos: Position
    to_pos: Position
    is_attack: bool = False


@dataclass(frozen=True)
class ScoredMove:
    move: CandidateMove
    score: float


# --- EVALUATION ---
def get_center_bonus(pos: Position, size: BoardSize, piece_type: PieceType) -> int:
    """Pieces like the center of the board. The Monarch prefers to stay away from it."""
    center_row = (size.rows - 1) / 2
    center_col = (size.cols - 1) / 2
    row_dist = abs(pos.row - center_row) / center_row
    col_dist = abs(pos.col - center_col) / center_col
    dist_from_center = (row_dist + col_dist) / 2
    multiplier = MONARCH_CENTER_MULTIPLIER if piece_type == PieceType.MONARCH else CENTER_MULTIPLIER
    # round half up
    return math.floor((1 - dist_from_center) * multiplier + 0.5)


def evaluate_board(board: Board) -> int:
    """Material + centrality. Black counts positive, White negative."""
    score = 0
    for row_idx, row in enumerate(board.grid):
        for col_idx, cell in enumerate(row):
            if not isinstance(cell, Piece):
                continue
            value = PIECE_VALUES[cell.type] + get_center_bonus(
                Position(row_idx, col_idx), board.size, cell.type
            )
            score += value if cell.color == Color.BLACK else -value
    return score


def captured_value(result: MoveResult) -> int:
    captured = result.move.captured
    return PIECE_VALUES[captured.type] if captured is not None else 0


# --- SEARCH ---
def generate_candidates(board: Board, color: Color, size: BoardSize) -> list[CandidateMove]:
    """
    Stable order: pieces row by row, then for each piece its moves before its attacks.
    A square that is both a move and an attack target is only offered the way a player's click resolves it.
    """
    candidates: list[CandidateMove] = []
    for pos, piece in board.pieces(color):
        moves = get_valid_moves(board, pos, size)
        attacks = get_valid_attacks(board, pos, size)
        candidates.extend(
            CandidateMove(pos, to) for to in moves if not resolves_as_attack(piece, to, moves, attacks)
        )
        candidates.extend(CandidateMove(pos, to, is_attack=True) for to in attacks)
    return candidates


def apply_candidate(
    board: Board, candidate: CandidateMove, size: BoardSize, narcs: Optional[list[Narc]] = None
) -> MoveResult:
    return make_move(board, candidate.from_pos, candidate.to_pos, size, candidate.is_attack, narcs)


def minimax(
    board: Board,
    depth: int,
    alpha: float,
    beta: float,
    maximizing: bool,
    size: BoardSize,
    narcs: Optional[list[Narc]] = None,
) -> float:
    """
    Minimax with alpha-beta pruning
    -----

    Black maximizes, White minimizes. Once beta <= alpha the remaining moves of this node are skipped.
    A side without any move gets the static evaluation of the board.
    """
    if depth == 0:
        return evaluate_board(board)

    color = Color.BLACK if maximizing else Color.WHITE
    best = -math.inf if maximizing else math.inf
    for candidate in generate_candidates(board, color, size):
        result = apply_candidate(board, candidate, size, narcs)
        score = minimax(result.new_board, depth - 1, alpha, beta, not maximizing, size, result.new_narcs)
        if maximizing:
            best = max(best, score)
            alpha = max(alpha, score)
        else:
            best = min(best, score)
            beta = min(beta, score)
        if beta <= alpha:
            break

    if math.isinf(best):
        return evaluate_board(board)
    return best


# -- STRATEGY PATTERN: SCORING PER DIFFICULTY ---
def score_easy(
    board: Board, candidate: CandidateMove, size: BoardSize, rng: random.Random, narcs: list[Narc]
) -> float:
    result = apply_candidate(board, candidate, size, narcs)
    score = rng.random() * EASY_JITTER + captured_value(result)
    if is_monarch_threatened(result.new_board, Color.WHITE, size):
        score += EASY_THREAT_BONUS
    return score


def score_medium(
    board: Board, candidate: CandidateMove, size: BoardSize, rng: random.Random, narcs: list[Narc]
) -> float:
    result = apply_candidate(board, candidate, size, narcs)
    score: float = captured_value(result) * 10
    if is_monarch_threatened(result.new_board, Color.WHITE, size):
        score += THREAT_BONUS

    piece = board.piece(candidate.from_pos)
    if not candidate.is_attack:
        score += get_center_bonus(candidate.to_pos, size, piece.type) - get_center_bonus(
            candidate.from_pos, size, piece.type
        )
    score += evaluate_board(result.new_board) * 0.1
    return score


def score_hard(
    board: Board, candidate: CandidateMove, size: BoardSize, rng: random.Random, narcs: list[Narc]
) -> float:
    result = apply_candidate(board, candidate, size, narcs)
    score = minimax(result.new_board, SEARCH_DEPTH, -math.inf, math.inf, False, size, result.new_narcs)
    if is_monarch_threatened(result.new_board, Color.WHITE, size):
        score += THREAT_BONUS
    score += captured_value(result) * 0.1
    return score


SCORING_RULES = {
    Difficulty.EASY: score_easy,
    Difficulty.MEDIUM: score_medium,
    Difficulty.HARD: score_hard,
}
TOP_K: dict[Difficulty, int] = {
    Difficulty.EASY: EASY_TOP_K,
    Difficulty.MEDIUM: MEDIUM_TOP_K,
    Difficulty.HARD: 1,
}


def get_bot_move(
    board: Board,
    difficulty: Difficulty,
    size: BoardSize,
    rng: random.Random,
    narcs: Optional[list[Narc]] = None,
) -> Optional[CandidateMove]:
    """Pick Black's next move. None when Black cannot move at all."""
    narcs = list(narcs or [])
    scorer = SCORING_RULES[difficulty]
    scored = [
        ScoredMove(candidate, scorer(board, candidate, size, rng, narcs))
        for candidate in generate_candidates(board, BOT_COLOR, size)
    ]
    if not scored:
        return None

    # stable: among equal scores the generation order is kept
    scored.sort(key=lambda s: s.score, reverse=True)
    top_k = min(TOP_K[difficulty], len(scored))
    selected = scored[rng.randrange(top_k)] if top_k > 1 else scored[0]
    logger.debug(
        f"Bot ({difficulty}) picked {selected.move} with score {selected.score:.1f} out of {len(scored)} candidates"
    )
    return selected.move


def get_hint_move(
    board: Board, size: BoardSize, narcs: Optional[list[Narc]] = None
) -> Optional[CandidateMove]:
    """
    Best move for White, scored like the hard bot but mirrored. Fully deterministic: on equal scores the first candidate wins.
    """
    narcs = list(narcs or [])
    best: Optional[ScoredMove] = None
    for candidate in generate_candidates(board, Color.WHITE, size):
        result = apply_candidate(board, candidate, size, narcs)
        score = -minimax(result.new_board, SEARCH_DEPTH, -math.inf, math.inf, True, size, result.new_narcs)
        if is_monarch_threatened(result.new_board, Color.BLACK, size):
            score += THREAT_BONUS
        score += captured_value(result) * 0.1
        if best is None or score > best.score:
            best = ScoredMove(candidate, score)
    return best.move if best is not None else None
