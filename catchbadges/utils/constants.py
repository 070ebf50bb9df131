DEFAULT_TIMEZONE = 'UTC'

# Size thresholds (inches)
TROPHY_SIZE = 20
OVER_30_SIZE = 30
OVER_40_SIZE = 40
SALTWATER_TROPHY_SIZE = 30
SALTWATER_SIZE_TIERS = (40, 50, 60)

# Hour cutoffs for the early/late buckets
EARLY_HOUR_CUTOFF = 7  # hour < 7
NIGHT_HOUR_CUTOFF = 20  # hour >= 20
GOLDEN_HOURS = (6, 7, 18, 19)

FRESHWATER = 'freshwater'
SALTWATER = 'saltwater'

# Day segments -> accepted time_of_day labels (lowercase)
DAY_SEGMENTS: dict[str, tuple[str, ...]] = {
    'morning': ('dawn', 'morning'),
    'afternoon': ('midday', 'afternoon'),
    'evening': ('dusk', 'evening', 'night'),
}

# Lunar buckets -> raw moon_phase labels
MOON_PHASE_BUCKETS: dict[str, tuple[str, ...]] = {
    'full': ('Full Moon',),
    'new': ('New Moon',),
    'waxing': ('Waxing Crescent', 'First Quarter', 'Waxing Gibbous'),
    'waning': ('Waning Gibbous', 'Last Quarter', 'Waning Crescent'),
}

MOON_POSITIONS = (
    'Overhead',
    'Underfoot',
    'Rising',
    'Setting',
    'Above Horizon',
    'Below Horizon',
)

MOON_HORIZON: dict[str, tuple[str, ...]] = {
    'above': ('Above Horizon', 'Overhead'),
    'below': ('Below Horizon', 'Underfoot'),
}

# Solunar periods -> raw moon_position labels
SOLUNAR_PERIODS: dict[str, tuple[str, ...]] = {
    'major': ('Overhead', 'Underfoot'),
    'minor': ('Rising', 'Setting'),
    'above': MOON_HORIZON['above'],
    'below': MOON_HORIZON['below'],
}

SEASON_MONTHS: dict[str, tuple[int, ...]] = {
    'spring': (3, 4, 5),
    'summer': (6, 7, 8),
    'fall': (9, 10, 11),
    'winter': (12, 1, 2),
}

SEASON_ALIASES = {'autumn': 'fall'}

# (month, day)
HOLIDAYS: tuple[tuple[int, int], ...] = (
    (1, 1),
    (7, 4),
    (10, 31),
    (12, 24),
    (12, 25),
    (12, 31),
)

# Dimension -> category -> (record field, accepted raw values, lowercase)
ENVIRONMENT_VOCABULARIES: dict[str, dict[str, tuple[str, tuple[str, ...]]]] = {
    'weather': {
        'rain': ('precipitation', ('light rain', 'rain', 'drizzle')),
        'snow': ('precipitation', ('snow',)),
        'dry': ('precipitation', ('none',)),
        'sunny': ('cloud', ('clear',)),
        'clear': ('cloud', ('clear',)),
        'cloudy': ('cloud', ('partly cloudy', 'cloudy')),
        'overcast': ('cloud', ('overcast',)),
    },
    'wind': {
        'calm': ('wind', ('calm',)),
        'light': ('wind', ('light',)),
        'breezy': ('wind', ('light', 'moderate')),
        'windy': ('wind', ('moderate', 'strong', 'gusty')),
        'strong': ('wind', ('strong', 'gusty')),
    },
    'pressure': {
        'rising': ('barometric_pressure', ('rising',)),
        'falling': ('barometric_pressure', ('falling',)),
        'stable': ('barometric_pressure', ('stable',)),
        'high': ('barometric_pressure', ('high', 'rising')),
        'low': ('barometric_pressure', ('low', 'falling')),
    },
    'air_temp': {
        'cold': ('air_temperature', ('cold', 'freezing')),
        'cool': ('air_temperature', ('cool',)),
        'mild': ('air_temperature', ('mild', 'moderate')),
        'warm': ('air_temperature', ('warm',)),
        'hot': ('air_temperature', ('hot',)),
    },
    'water_temp': {
        'cold': ('water_temperature', ('cold',)),
        'cool': ('water_temperature', ('cool',)),
        'moderate': ('water_temperature', ('moderate',)),
        'warm': ('water_temperature', ('warm',)),
    },
    'water_clarity': {
        'clear': ('clarity', ('clear',)),
        'stained': ('clarity', ('slightly murky',)),
        'murky': ('clarity', ('slightly murky', 'murky')),
        'muddy': ('clarity', ('muddy',)),
    },
    'water_level': {
        'low': ('water_level', ('low',)),
        'normal': ('water_level', ('normal',)),
        'high': ('water_level', ('high', 'flood')),
        'flood': ('water_level', ('flood',)),
    },
    'water_speed': {
        'still': ('water_speed', ('still',)),
        'slow': ('water_speed', ('still', 'slow')),
        'moderate': ('water_speed', ('moderate',)),
        'fast': ('water_speed', ('fast', 'rapid')),
    },
    'tide': {
        'incoming': ('tide', ('incoming',)),
        'outgoing': ('tide', ('outgoing',)),
        'moving': ('tide', ('incoming', 'outgoing')),
        'high': ('tide', ('high',)),
        'low': ('tide', ('low',)),
        'slack': ('tide', ('slack',)),
    },
    'surface_condition': {
        'calm': ('surface_condition', ('calm',)),
        'rippled': ('surface_condition', ('rippled',)),
        'choppy': ('surface_condition', ('choppy',)),
        'rough': ('surface_condition', ('choppy', 'rough')),
    },
}

# Requirement field name -> statistics key
STAT_FIELD_ALIASES: dict[str, str] = {
    'total_caught': 'total_caught',
    'species_count': 'species_count',
    'location_count': 'location_count',
    'max_size': 'max_size',
    'max_weight': 'max_weight',
    'log_count': 'log_count',
    'rod_count': 'rod_count',
    'fly_count': 'fly_count',
    'quantity': 'daily_max',
    'daily_quantity': 'daily_max',
    'time': 'early_morning_catches',
    'early_start': 'early_morning_catches',
    'late_fishing': 'night_catches',
    'moon_phase': 'full_moon_catches',
    'solunar_position': 'moon_above_horizon_catches',
    'season': 'seasons_fished',
    'seasons_fished': 'seasons_fished',
    'months_fished': 'months_fished',
    'fishing_streak': 'longest_streak',
    'catch_streak': 'catch_streak',
    'no_skunk_streak': 'no_skunk_streak',
    'location_max_visits': 'location_max_visits',
    'species_max_count': 'species_max_count',
    'daily_species_count': 'daily_species_max',
    'daily_species': 'daily_species_max',
    'rod_max_catches': 'rod_max_catches',
    'fly_max_catches': 'fly_max_catches',
    'days_active': 'account_age',
    'notes_count': 'notes_count',
    'skunk_count': 'skunk_count',
    'weight_logged': 'weight_logged_count',
    'trophy_count': 'trophy_count',
    'daily_trophies': 'max_daily_trophies',
    'freshwater_daily_trophies': 'freshwater_max_daily_trophies',
    'saltwater_daily_trophies': 'saltwater_max_daily_trophies',
}

# Bare size fields on count_where -> size-tier statistic
SIZE_TIER_STATS: dict[str, dict[int, str]] = {
    'max_size': {20: 'trophy_count', 30: 'over_30_count', 40: 'over_40_count'},
    'freshwater_max_size': {
        20: 'freshwater_trophy_count',
        30: 'freshwater_over_30_count',
        40: 'freshwater_over_40_count',
    },
    'saltwater_max_size': {
        30: 'saltwater_trophy_count',
        40: 'saltwater_over_40_count',
        50: 'saltwater_over_50_count',
        60: 'saltwater_over_60_count',
    },
}

SCALAR_KINDS = (
    'count',
    'max',
    'streak',
    'catch_streak',
    'no_skunk',
    'account_age',
    'location_visits',
    'species_max',
    'rod_max',
    'fly_max',
    'daily_max',
    'daily_species',
    'exists',
)
PARTITIONED_KINDS = ('count_where',)
TIME_KINDS = (
    'time_range',
    'count_time',
    'count_golden_hour',
    'time_between',
    'time_variety',
)
LUNAR_KINDS = (
    'moon_phase',
    'count_moon',
    'moon_variety',
    'solunar',
    'count_solunar',
    'moon_position_variety',
)
SEASONAL_KINDS = (
    'season',
    'count_season',
    'season_variety',
    'month_variety',
    'specific_date',
    'holiday',
    'birthday',
)
ENVIRONMENT_KINDS = tuple(ENVIRONMENT_VOCABULARIES) + tuple(
    f'count_{dimension}' for dimension in ENVIRONMENT_VOCABULARIES
)
SOCIAL_KINDS = (
    'friend_days',
    'solo_days',
    'max_friends',
    'friend_count',
    'followers',
    'following',
)
DAILY_VARIETY_KINDS = (
    'daily_locations',
    'daily_flies',
    'daily_rods',
    'daily_species_variety',
    'rod_variety',
    'fly_variety',
    'count_fly_type',
    'new_spot_success',
)
CONSISTENCY_KINDS = (
    'consecutive_months',
    'monthly_streak',
    'weekly_streak',
    'weekend_streak',
    'weekday_streak',
)
COMBO_KINDS = ('combo',)
CHALLENGE_KINDS = ('challenge',)

REQUIREMENT_KINDS: tuple[str, ...] = (
    SCALAR_KINDS
    + PARTITIONED_KINDS
    + TIME_KINDS
    + LUNAR_KINDS
    + SEASONAL_KINDS
    + ENVIRONMENT_KINDS
    + SOCIAL_KINDS
    + DAILY_VARIETY_KINDS
    + CONSISTENCY_KINDS
    + COMBO_KINDS
    + CHALLENGE_KINDS
)

# Conditions a single log must meet
COMBO_RECORD_CONDITIONS = (
    'time_of_day',
    'time_before',
    'time_after',
    'moon_phase',
    'season',
    'size',
    'quantity',
    'weather',
    'solunar',
    'new_location',
)

# Conditions on the day the log belongs to -> per-day aggregate
COMBO_DAY_CONDITIONS: dict[str, str] = {
    'daily_count': 'total',
    'daily_species': 'species',
    'daily_flies': 'flies',
    'daily_locations': 'locations',
}

# Challenge field -> environmental record field that must be logged
CONDITION_LOG_FIELDS: dict[str, str] = {
    'weather_count': 'cloud',
    'air_temp_count': 'air_temperature',
    'water_temp_count': 'water_temperature',
    'clarity_count': 'clarity',
    'flow_count': 'water_speed',
    'tide_count': 'tide',
}

# Job retry defaults
BADGE_SYNC_MAX_ATTEMPTS = 3
BADGE_SYNC_BACKOFF_SECONDS = 10

# Numeric operators on a categorical dimension -> category
DIRECTIONAL_CATEGORIES: dict[str, dict[str, str]] = {
    'wind': {'>': 'windy', '>=': 'windy', '<': 'calm', '<=': 'calm'},
    'pressure': {'>': 'high', '>=': 'high', '<': 'low', '<=': 'low'},
}
