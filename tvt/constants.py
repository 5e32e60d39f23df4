"""Constants and mappings for the TVT league scorer."""

# FPL provider endpoints
FPL_API_BASE = 'https://fantasy.premierleague.com/api'
BOOTSTRAP_URL = f'{FPL_API_BASE}/bootstrap-static/'
FIXTURES_URL = f'{FPL_API_BASE}/fixtures/?event={{gw}}'
EVENT_LIVE_URL = f'{FPL_API_BASE}/event/{{gw}}/live/'
PICKS_URL = f'{FPL_API_BASE}/entry/{{entry_id}}/event/{{gw}}/picks/'

# Provider cache lifetimes (seconds)
BOOTSTRAP_TTL_SECONDS = 12 * 60 * 60
FIXTURES_TTL_SECONDS = 30
LIVE_EVENT_TTL_SECONDS = 10
PICKS_TTL_SECONDS = 10

REQUEST_TIMEOUT_SECONDS = 8
PICKS_FETCH_WORKERS = 8

# A gameweek counts as started for display this long before its deadline
STARTED_LEAD_HOURS = 12

# League points per matchup outcome
WIN_POINTS = 2
DRAW_POINTS = 1
LOSS_POINTS = 0

# Rank cut-offs for qualification tiers (inclusive upper bounds)
QUALIFICATION_TIERS = [
    (8, 'TVT Playoffs'),
    (14, "Challenger's Playoffs"),
]
ELIMINATION_TIER = 'Elimination Zone'

DEFAULT_BASELINE_GW = 27

GROUP_A = 'A'
GROUP_B = 'B'

# Historical spellings -> canonical baseline team name
TEAM_NAME_ALIASES = {
    'Despicable Memelennials': 'Despicable Memelenials',
    'North Eastern Hillbillies': 'North Eastern Hillibillies',
    'xG Xorcists': 'XX Orcsits',
    "Maresca's Villagers": 'Maresca’s Villagers',
}

CACHE_CONTROL_VALUE = 's-maxage=10, stale-while-revalidate=30'
