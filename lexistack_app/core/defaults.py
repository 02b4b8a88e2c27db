"""
Centralized Default Configuration for LexiStack.

Source of truth for the engine's tunables. ``apply_default_configs`` copies
them into ``app.config`` unless the config class or environment already set
a value.
"""

DEFAULT_APP_CONFIGS = {
    # --- Daily pack ---
    'DAILY_PAGE_SIZE': 7,
    'DAILY_NEW_LEVELS': [],                   # empty = no level filter on "new"

    # --- Hard word of the day ---
    'HARD_WORD_TOP_N': 2000,                  # frequency-rank ceiling
    'HARD_WORD_CANDIDATE_LIMIT': 400,
    'HARD_WORD_REPEAT_WINDOW_DAYS': 14,
    'HARD_WORD_MIN_LEVEL': 'A2',
    'HARD_WORD_FORMAL_REGISTERS': ['formal'],

    # --- Streaks & rewards ---
    'ACTIVE_DAY_REWARD_KEY': 'active_day',
    'ACTIVE_DAY_DEFAULT_XP': 10,

    # --- Lists ---
    'MY_WORDS_MAX_LIMIT': 200,
    'LEADERBOARD_DEFAULT_LIMIT': 20,
}
