"""FastAPI-powered web UI for playing Tic-Tac-Toe against the engine."""

from __future__ import annotations

import logging
import random
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import config
from .ai import select_move
from .game import Difficulty, Mark, TicTacToeGame

logger = logging.getLogger(__name__)


AI_THINK_DELAY: float = config.AI_DELAY_SECONDS


@dataclass
class GameSession:
    """Container for one player's rounds, engine settings, and running score."""

    game: TicTacToeGame
    difficulty: Difficulty = Difficulty.CASUAL
    human_mark: Mark = Mark.X
    scores: Dict[str, int] = field(
        default_factory=lambda: {"x": 0, "o": 0, "draw": 0}
    )
    round_id: int = 0
    ai_pending: bool = False
    message: str = ""
    rng: random.Random = field(default_factory=random.Random, repr=False)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def ai_mark(self) -> Mark:
        return self.human_mark.opponent()


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(title="Tic-Tac-Toe", description="Play Tic-Tac-Toe against the computer")


def _upper_mark(value: object) -> object:
    return value.upper() if isinstance(value, str) else value


class NewGameRequest(BaseModel):
    """Request payload for starting a new game."""

    model_config = ConfigDict(populate_by_name=True)

    difficulty: Difficulty = Field(
        default=Difficulty.CASUAL, description="Engine strength tier"
    )
    human_mark: Mark = Field(default=Mark.X, alias="humanMark")

    @field_validator("human_mark", mode="before")
    @classmethod
    def normalize_mark(cls, value: object) -> object:
        return _upper_mark(value)


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    model_config = ConfigDict(populate_by_name=True)

    cell_index: int = Field(alias="cellIndex", ge=0, le=8)


class DifficultyRequest(BaseModel):
    difficulty: Difficulty


class HumanMarkRequest(BaseModel):
    mark: Mark

    @field_validator("mark", mode="before")
    @classmethod
    def normalize_mark(cls, value: object) -> object:
        return _upper_mark(value)


def _create_session(difficulty: Difficulty, human_mark: Mark) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    session = GameSession(
        game=TicTacToeGame(), difficulty=difficulty, human_mark=human_mark
    )
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info(
        "Created game %s (difficulty=%s, human=%s)",
        session_id,
        difficulty.value,
        human_mark.value,
    )
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _record_result(game_id: str, session: GameSession) -> None:
    """Tally a finished round. Caller holds the session lock."""

    game = session.game
    if game.winner is Mark.X:
        session.scores["x"] += 1
        session.message = "PLAYER X WINS - THREE IN A ROW"
    elif game.winner is Mark.O:
        session.scores["o"] += 1
        session.message = "PLAYER O WINS - THREE IN A ROW"
    else:
        session.scores["draw"] += 1
        session.message = "DRAW - ALL CELLS FILLED - NO WINNER"
    logger.info("Game %s round %d finished: %s", game_id, session.round_id, game.status.value)


def _start_round(session: GameSession) -> bool:
    """Reset the board. Returns True when the engine opens. Caller holds the lock."""

    session.game.reset()
    session.round_id += 1
    session.message = f"GAME START - PLAYER {session.game.current_player.value} TURN"
    engine_opens = session.game.current_player == session.ai_mark
    session.ai_pending = engine_opens
    return engine_opens


def _run_ai_turn(game_id: str, round_id: int) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return

    time.sleep(max(0.0, AI_THINK_DELAY))

    with session.lock:
        # A restart while the engine was thinking starts a new round
        if session.round_id != round_id:
            return
        try:
            game = session.game
            if game.finished or game.current_player != session.ai_mark:
                return
            cell = select_move(
                game.board,
                session.difficulty,
                session.ai_mark,
                session.human_mark,
                rng=session.rng,
            )
            game.play_move(cell)
            if game.finished:
                _record_result(game_id, session)
            else:
                session.message = f"PLAYER {game.current_player.value} TURN - SELECT CELL"
        finally:
            session.ai_pending = False


def _schedule_ai(
    game_id: str, session: GameSession, background_tasks: Optional[BackgroundTasks]
) -> None:
    if background_tasks is not None:
        background_tasks.add_task(_run_ai_turn, game_id, session.round_id)


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        game = session.game
        move_log: List[Dict[str, object]] = [
            {"player": player.value, "cellIndex": cell} for player, cell in game.moves
        ]
        state: Dict[str, object] = {
            "id": game_id,
            "board": [c.value if c is not None else "" for c in game.board],
            "currentPlayer": game.current_player.value,
            "humanMark": session.human_mark.value,
            "aiMark": session.ai_mark.value,
            "difficulty": session.difficulty.value,
            "difficultyLabel": session.difficulty.label,
            "status": game.status.value,
            "winner": game.winner.value if game.winner else None,
            "winningLine": list(game.winning_line) if game.winning_line else None,
            "moveCount": game.move_count,
            "moveLog": move_log,
            "availableMoves": game.available_moves(),
            "scores": dict(session.scores),
            "aiPending": session.ai_pending,
            "message": session.message,
        }
        if move_log:
            state["lastMove"] = move_log[-1]
        return state


def _apply_player_move(
    game_id: str,
    session: GameSession,
    cell_index: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    should_schedule_ai = False
    with session.lock:
        game = session.game
        if game.finished:
            raise HTTPException(
                status_code=400, detail="GAME OVER - START NEW ROUND TO CONTINUE"
            )

        if session.ai_pending or game.current_player != session.human_mark:
            raise HTTPException(status_code=400, detail="WAIT - AI IS PROCESSING")

        try:
            game.play_move(cell_index)
        except ValueError as exc:
            logger.warning("Game %s rejected move %d: %s", game_id, cell_index, exc)
            raise HTTPException(
                status_code=400, detail="INVALID MOVE - CELL OCCUPIED - SELECT ANOTHER"
            ) from exc

        if game.finished:
            _record_result(game_id, session)
        else:
            session.message = "AI PROCESSING - CALCULATING MOVE..."
            session.ai_pending = should_schedule_ai = True

    if should_schedule_ai:
        _schedule_ai(game_id, session, background_tasks)


@app.post("/api/game")
def create_game(
    request: NewGameRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    game_id, session = _create_session(request.difficulty, request.human_mark)
    with session.lock:
        engine_opens = _start_round(session)
    if engine_opens:
        _schedule_ai(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(game_id, session, request.cell_index, background_tasks)
    return _serialize_session(game_id, session)


@app.put("/api/game/{game_id}/difficulty")
def change_difficulty(game_id: str, request: DifficultyRequest) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        session.difficulty = request.difficulty
        note = "" if session.game.finished else " - APPLIED TO NEXT MOVE"
        session.message = (
            f"AI DIFFICULTY SET TO: {request.difficulty.label.upper()}{note}"
        )
    return _serialize_session(game_id, session)


@app.put("/api/game/{game_id}/human")
def change_human_mark(
    game_id: str, request: HumanMarkRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    engine_opens = False
    with session.lock:
        if session.game.move_count:
            raise HTTPException(
                status_code=409,
                detail="CANNOT CHANGE PLAYER - GAME IN PROGRESS - START NEW ROUND",
            )
        if request.mark != session.human_mark:
            session.human_mark = request.mark
            engine_opens = _start_round(session)
    if engine_opens:
        _schedule_ai(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/restart")
def restart_round(game_id: str, background_tasks: BackgroundTasks) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        engine_opens = _start_round(session)
    if engine_opens:
        _schedule_ai(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/scores/reset")
def reset_scores(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        session.scores = {"x": 0, "o": 0, "draw": 0}
        session.message = "SCORES RESET - ALL COUNTERS SET TO ZERO"
    return _serialize_session(game_id, session)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>Tic-Tac-Toe</title>
    <style>
      body { font-family: monospace; background: #f2f2f2; color: #111; margin: 2rem; }
      #board { display: grid; grid-template-columns: repeat(3, 5rem); gap: 4px; margin: 1rem 0; }
      #board button { height: 5rem; font-size: 2rem; font-family: inherit; border: 3px solid #111; background: #fff; }
      #board button.win { background: #ffe066; }
      #status { font-weight: bold; min-height: 1.5em; }
      fieldset { display: inline-block; margin-right: 1rem; }
    </style>
  </head>
  <body>
    <h1>TIC-TAC-TOE</h1>
    <fieldset>
      <legend>DIFFICULTY</legend>
      <label><input type=\"radio\" name=\"difficulty\" value=\"easy\" checked /> Casual</label>
      <label><input type=\"radio\" name=\"difficulty\" value=\"medium\" /> Strategic</label>
      <label><input type=\"radio\" name=\"difficulty\" value=\"hard\" /> Expert</label>
    </fieldset>
    <fieldset>
      <legend>YOU PLAY</legend>
      <label><input type=\"radio\" name=\"human\" value=\"X\" checked /> X</label>
      <label><input type=\"radio\" name=\"human\" value=\"O\" /> O</label>
    </fieldset>
    <div id=\"status\" role=\"status\" aria-live=\"polite\"></div>
    <div id=\"board\"></div>
    <p>X: <span id=\"score-x\">0</span> | O: <span id=\"score-o\">0</span> | DRAW: <span id=\"score-draw\">0</span></p>
    <button id=\"restart\">NEW ROUND</button>
    <button id=\"reset-scores\">RESET SCORES</button>
    <script>
      let gameId = null;
      const boardEl = document.getElementById('board');
      const cells = [];
      for (let i = 0; i < 9; i++) {
        const cell = document.createElement('button');
        cell.setAttribute('aria-label', `Cell ${i + 1}: Empty`);
        cell.addEventListener('click', () => call('POST', 'move', { cellIndex: i }));
        boardEl.appendChild(cell);
        cells.push(cell);
      }

      function render(state) {
        state.board.forEach((mark, i) => {
          cells[i].textContent = mark;
          cells[i].disabled = mark !== '' || state.status !== 'PLAYING';
          cells[i].classList.toggle('win', !!state.winningLine && state.winningLine.includes(i));
          cells[i].setAttribute('aria-label', `Cell ${i + 1}: ${mark || 'Empty'}`);
        });
        document.getElementById('status').textContent = state.message;
        document.getElementById('score-x').textContent = state.scores.x;
        document.getElementById('score-o').textContent = state.scores.o;
        document.getElementById('score-draw').textContent = state.scores.draw;
        if (state.aiPending) setTimeout(refresh, 300);
      }

      async function call(method, path, body) {
        const url = path ? `/api/game/${gameId}/${path}` : `/api/game/${gameId}`;
        const response = await fetch(url, {
          method,
          headers: { 'Content-Type': 'application/json' },
          body: body ? JSON.stringify(body) : undefined,
        });
        const payload = await response.json();
        if (!response.ok) {
          document.getElementById('status').textContent = payload.detail;
          return;
        }
        render(payload);
      }

      const refresh = () => call('GET', '');

      async function start() {
        const difficulty = document.querySelector('input[name=difficulty]:checked').value;
        const humanMark = document.querySelector('input[name=human]:checked').value;
        const response = await fetch('/api/game', {
          method: 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: JSON.stringify({ difficulty, humanMark }),
        });
        const state = await response.json();
        gameId = state.id;
        render(state);
      }

      document.querySelectorAll('input[name=difficulty]').forEach((radio) =>
        radio.addEventListener('change', () => call('PUT', 'difficulty', { difficulty: radio.value }))
      );
      document.querySelectorAll('input[name=human]').forEach((radio) =>
        radio.addEventListener('change', () => call('PUT', 'human', { mark: radio.value }))
      );
      document.getElementById('restart').addEventListener('click', () => call('POST', 'restart'));
      document.getElementById('reset-scores').addEventListener('click', () => call('POST', 'scores/reset'));
      start();
    </script>
  </body>
</html>
"""
