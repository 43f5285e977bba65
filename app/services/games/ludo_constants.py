# app/services/games/ludo_constants.py

from schemas.ludo_schema import GameMode, TokenColor

# Board configuration
PATH_LENGTH = 52  # Shared ring
HOME_STRETCH_LENGTH = 6  # Color-private final stretch
FINISH_POSITION = PATH_LENGTH + HOME_STRETCH_LENGTH
HOME_POSITION = -1  # Home base, token not yet entered
TOKENS_PER_PLAYER = 4

MIN_PLAYERS = 2
MAX_PLAYERS = 4

# Dice
DICE_MIN = 1
DICE_MAX = 6
EXIT_HOME_ROLL = 6
MAX_CONSECUTIVE_SIXES = 3

CAPTURE_BONUS_STEPS = 2

# Bot turns one transition may resolve before handing back to the turn clock
MAX_BOT_TURNS_PER_TRANSITION = 100

# Seat order also decides color
PLAYER_COLORS = [TokenColor.RED, TokenColor.BLUE, TokenColor.YELLOW, TokenColor.GREEN]

# Where each color enters the ring
START_POSITIONS = {
    TokenColor.RED: 0,
    TokenColor.BLUE: 13,
    TokenColor.YELLOW: 26,
    TokenColor.GREEN: 39,
}

STAR_CELLS = frozenset({8, 21, 34, 47})

# Only the star cells; start cells can be captured on
SAFE_CELLS = STAR_CELLS

# Turn time limits in seconds
TURN_DURATIONS = {
    GameMode.CLASSIC: 15,
    GameMode.SPEED: 10,
    GameMode.QUICK: 5,
}
