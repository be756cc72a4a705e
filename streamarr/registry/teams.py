"""Static team and channel tables for the live mapping version.

Every team carries its upstream stream ID, full name, nicknames (first one is
primary), abbreviation, and full-name spelling variants seen in upstream
playlists. Derived lookup tables are built once at import time.
"""

from dataclasses import dataclass

from streamarr.core.types import LeagueId


@dataclass(frozen=True)
class TeamEntry:
    """One team's upstream channel."""

    stream_id: int
    name: str
    nicknames: tuple[str, ...]
    abbreviation: str
    league_id: LeagueId
    aliases: tuple[str, ...] = ()

    @property
    def nickname(self) -> str:
        return self.nicknames[0]


@dataclass(frozen=True)
class ChannelEntry:
    """A league network or standalone channel (no team)."""

    stream_id: int
    name: str


def _teams(league: LeagueId, rows: list[tuple]) -> tuple[TeamEntry, ...]:
    entries = []
    for row in rows:
        stream_id, name, nicknames, abbreviation, *rest = row
        if isinstance(nicknames, str):
            nicknames = (nicknames,)
        aliases = tuple(rest[0]) if rest else ()
        entries.append(TeamEntry(stream_id, name, nicknames, abbreviation, league, aliases))
    return tuple(entries)


# =============================================================================
# NHL
# =============================================================================

NHL_TEAMS = _teams(
    LeagueId.NHL,
    [
        (6, "Anaheim Ducks", "DUCKS", "ANA"),
        (7, "Utah Hockey Club", "UTAH", "UTA", ["UTAH MAMMOTH"]),
        (8, "Boston Bruins", "BRUINS", "BOS"),
        (9, "Buffalo Sabres", "SABRES", "BUF"),
        (10, "Calgary Flames", "FLAMES", "CGY"),
        (11, "Chicago Blackhawks", "BLACKHAWKS", "CHI"),
        (12, "Colorado Avalanche", ("AVALANCHE", "AVS"), "COL"),
        (13, "Columbus Blue Jackets", "BLUE JACKETS", "CBJ"),
        (14, "Dallas Stars", "STARS", "DAL"),
        (15, "Detroit Red Wings", "RED WINGS", "DET"),
        (16, "Edmonton Oilers", "OILERS", "EDM"),
        (17, "Florida Panthers", "PANTHERS", "FLA"),
        (18, "Los Angeles Kings", "KINGS", "LAK"),
        (19, "Minnesota Wild", "WILD", "MIN"),
        (20, "Montreal Canadiens", ("CANADIENS", "HABS"), "MTL"),
        (21, "Nashville Predators", ("PREDATORS", "PREDS"), "NSH"),
        (22, "New Jersey Devils", "DEVILS", "NJD"),
        (23, "New York Islanders", "ISLANDERS", "NYI"),
        (24, "New York Rangers", "RANGERS", "NYR"),
        (25, "Ottawa Senators", "SENATORS", "OTT"),
        (26, "Philadelphia Flyers", "FLYERS", "PHI"),
        (27, "Pittsburgh Penguins", "PENGUINS", "PIT"),
        (28, "San Jose Sharks", "SHARKS", "SJS"),
        (29, "Seattle Kraken", "KRAKEN", "SEA"),
        (30, "St Louis Blues", "BLUES", "STL"),
        (31, "Tampa Bay Lightning", "LIGHTNING", "TBL"),
        (32, "Toronto Maple Leafs", ("MAPLE LEAFS", "LEAFS"), "TOR"),
        (33, "Vegas Golden Knights", ("GOLDEN KNIGHTS", "KNIGHTS"), "VGK"),
        (34, "Washington Capitals", ("CAPITALS", "CAPS"), "WSH"),
        (98, "Vancouver Canucks", "CANUCKS", "VAN"),
        (102, "Winnipeg Jets", "JETS", "WPG"),
        (137, "Carolina Hurricanes", ("HURRICANES", "CANES"), "CAR"),
    ],
)


# =============================================================================
# NFL
# =============================================================================

NFL_TEAMS = _teams(
    LeagueId.NFL,
    [
        (35, "San Francisco 49ers", ("49ERS", "NINERS"), "SF"),
        (36, "Chicago Bears", "BEARS", "CHI"),
        (37, "Cincinnati Bengals", "BENGALS", "CIN"),
        (38, "Buffalo Bills", "BILLS", "BUF"),
        (39, "Denver Broncos", "BRONCOS", "DEN"),
        (40, "Cleveland Browns", "BROWNS", "CLE"),
        (41, "Tampa Bay Buccaneers", ("BUCCANEERS", "BUCS"), "TB"),
        (42, "Arizona Cardinals", "CARDINALS", "ARI"),
        (43, "Los Angeles Chargers", "CHARGERS", "LAC"),
        (44, "Kansas City Chiefs", "CHIEFS", "KC"),
        (45, "Indianapolis Colts", "COLTS", "IND"),
        (46, "Miami Dolphins", "DOLPHINS", "MIA"),
        (47, "Atlanta Falcons", "FALCONS", "ATL"),
        (48, "New York Giants", "GIANTS", "NYG"),
        (49, "Jacksonville Jaguars", "JAGUARS", "JAX"),
        (50, "New York Jets", "JETS", "NYJ"),
        (51, "Detroit Lions", "LIONS", "DET"),
        (52, "Green Bay Packers", "PACKERS", "GB"),
        (53, "Carolina Panthers", "PANTHERS", "CAR"),
        (54, "New England Patriots", ("PATRIOTS", "PATS"), "NE"),
        (55, "Las Vegas Raiders", "RAIDERS", "LV", ["OAKLAND RAIDERS"]),
        (56, "Los Angeles Rams", "RAMS", "LAR"),
        (57, "Baltimore Ravens", "RAVENS", "BAL"),
        (58, "New Orleans Saints", "SAINTS", "NO"),
        (59, "Seattle Seahawks", "SEAHAWKS", "SEA"),
        (60, "Pittsburgh Steelers", "STEELERS", "PIT"),
        (61, "Houston Texans", "TEXANS", "HOU"),
        (62, "Tennessee Titans", "TITANS", "TEN"),
        (63, "Minnesota Vikings", "VIKINGS", "MIN"),
        (
            96,
            "Washington Commanders",
            ("COMMANDERS", "FOOTBALL TEAM", "REDSKINS"),
            "WSH",
            ["WASHINGTON FOOTBALL TEAM", "WASHINGTON REDSKINS"],
        ),
        (140, "Philadelphia Eagles", "EAGLES", "PHI"),
        (141, "Dallas Cowboys", "COWBOYS", "DAL"),
    ],
)


# =============================================================================
# NBA
# Stream 92 is a second Celtics feed the provider labels "BOSTON SELTICS";
# it stays in the block unnamed so the misspelling resolves to 66.
# =============================================================================

NBA_TEAMS = _teams(
    LeagueId.NBA,
    [
        (65, "Atlanta Hawks", "HAWKS", "ATL"),
        (66, "Boston Celtics", "CELTICS", "BOS", ["BOSTON SELTICS"]),
        (67, "Brooklyn Nets", "NETS", "BKN"),
        (68, "Washington Wizards", "WIZARDS", "WAS"),
        (69, "Utah Jazz", "JAZZ", "UTA"),
        (70, "Toronto Raptors", "RAPTORS", "TOR"),
        (71, "San Antonio Spurs", "SPURS", "SAS"),
        (72, "Sacramento Kings", "KINGS", "SAC"),
        (73, "Portland Trail Blazers", ("TRAIL BLAZERS", "BLAZERS"), "POR"),
        (74, "Memphis Grizzlies", ("GRIZZLIES", "GRIZZ"), "MEM"),
        (75, "Miami Heat", "HEAT", "MIA"),
        (76, "Milwaukee Bucks", "BUCKS", "MIL"),
        (77, "Minnesota Timberwolves", ("TIMBERWOLVES", "WOLVES"), "MIN"),
        (78, "New Orleans Pelicans", "PELICANS", "NOP"),
        (79, "New York Knicks", "KNICKS", "NYK"),
        (80, "Oklahoma City Thunder", "THUNDER", "OKC", ["OKLAHOMA CITY THUNDERS"]),
        (81, "Orlando Magic", "MAGIC", "ORL"),
        (82, "Philadelphia 76ers", ("76ERS", "SIXERS"), "PHI"),
        (83, "Phoenix Suns", "SUNS", "PHX"),
        (84, "Dallas Mavericks", ("MAVERICKS", "MAVS"), "DAL"),
        (85, "Denver Nuggets", "NUGGETS", "DEN"),
        (86, "Detroit Pistons", "PISTONS", "DET"),
        (87, "Golden State Warriors", "WARRIORS", "GSW"),
        (88, "Houston Rockets", "ROCKETS", "HOU"),
        (89, "Indiana Pacers", "PACERS", "IND"),
        (90, "Los Angeles Clippers", "CLIPPERS", "LAC", ["LOS ANGLES CLIPPERS"]),
        (91, "Los Angeles Lakers", "LAKERS", "LAL", ["LOS ANGLES LAKERS"]),
        (93, "Charlotte Hornets", "HORNETS", "CHA"),
        (94, "Chicago Bulls", "BULLS", "CHI"),
        (95, "Cleveland Cavaliers", ("CAVALIERS", "CAVS"), "CLE", ["CLEVLAND CAVALIERS"]),
    ],
)


# =============================================================================
# MLB (block 185-214 since the fourth renumbering)
# =============================================================================

MLB_TEAMS = _teams(
    LeagueId.MLB,
    [
        (185, "Los Angeles Angels", "ANGELS", "LAA"),
        (186, "Houston Astros", "ASTROS", "HOU"),
        (187, "Oakland Athletics", ("ATHLETICS", "A'S"), "OAK", ["SACRAMENTO ATHLETICS"]),
        (188, "Atlanta Braves", "BRAVES", "ATL"),
        (189, "Milwaukee Brewers", "BREWERS", "MIL"),
        (190, "Toronto Blue Jays", "BLUE JAYS", "TOR"),
        (191, "Chicago Cubs", "CUBS", "CHC"),
        (192, "St Louis Cardinals", "CARDINALS", "STL"),
        (193, "Los Angeles Dodgers", "DODGERS", "LAD"),
        (194, "Arizona Diamondbacks", ("DIAMONDBACKS", "DBACKS"), "ARI"),
        (195, "San Francisco Giants", "GIANTS", "SF"),
        (196, "Cleveland Guardians", "GUARDIANS", "CLE"),
        (197, "New York Mets", "METS", "NYM"),
        (198, "Seattle Mariners", "MARINERS", "SEA"),
        (199, "Miami Marlins", "MARLINS", "MIA"),
        (200, "Washington Nationals", ("NATIONALS", "NATS"), "WSH"),
        (201, "Baltimore Orioles", "ORIOLES", "BAL"),
        (202, "Pittsburgh Pirates", "PIRATES", "PIT"),
        (203, "Philadelphia Phillies", "PHILLIES", "PHI"),
        (204, "San Diego Padres", "PADRES", "SD"),
        (205, "Tampa Bay Rays", "RAYS", "TB"),
        (206, "Cincinnati Reds", "REDS", "CIN"),
        (207, "Kansas City Royals", "ROYALS", "KC"),
        (208, "Texas Rangers", "RANGERS", "TEX"),
        (209, "Colorado Rockies", "ROCKIES", "COL"),
        (210, "Boston Red Sox", "RED SOX", "BOS"),
        (211, "Minnesota Twins", "TWINS", "MIN"),
        (212, "Detroit Tigers", "TIGERS", "DET"),
        (213, "Chicago White Sox", "WHITE SOX", "CWS"),
        (214, "New York Yankees", "YANKEES", "NYY"),
    ],
)


# =============================================================================
# CHANNELS
# 1-5 are the league networks; the rest are standalone channels scattered
# through the playlist.
# =============================================================================

LEAGUE_NETWORKS: tuple[ChannelEntry, ...] = (
    ChannelEntry(1, "NBA TV"),
    ChannelEntry(2, "NFL Network"),
    ChannelEntry(3, "ESPN US"),
    ChannelEntry(4, "NHL Network"),
    ChannelEntry(5, "NFL RedZone"),
)

NETWORK_CHANNELS: tuple[ChannelEntry, ...] = (
    ChannelEntry(64, "NHL RDS"),
    ChannelEntry(97, "NHL - 4 Nations 02"),
    ChannelEntry(99, "Women Hockey - TSN 1"),
    ChannelEntry(100, "RDS 2"),
    ChannelEntry(101, "Women Hockey - TSN 4"),
    ChannelEntry(103, "NHL - TVA"),
    ChannelEntry(104, "NBA - TBS"),
    ChannelEntry(105, "MLB TV"),
    ChannelEntry(136, "TSN 2"),
    ChannelEntry(138, "ESPN Plus"),
    ChannelEntry(139, "Fox Sport"),
    ChannelEntry(142, "Marquee Sports Network"),
    ChannelEntry(143, "Fight Network"),
    ChannelEntry(145, "TNT"),
)

ALL_TEAMS: tuple[TeamEntry, ...] = NHL_TEAMS + NFL_TEAMS + NBA_TEAMS + MLB_TEAMS
ALL_CHANNELS: tuple[ChannelEntry, ...] = LEAGUE_NETWORKS + NETWORK_CHANNELS

TEAMS_BY_ID: dict[int, TeamEntry] = {team.stream_id: team for team in ALL_TEAMS}
CHANNELS_BY_ID: dict[int, ChannelEntry] = {channel.stream_id: channel for channel in ALL_CHANNELS}


# =============================================================================
# DERIVED NAME TABLES
# All keys are uppercase with "ST." already folded to "ST", matching the
# normalizer's output.
# =============================================================================


def _upper(text: str) -> str:
    return " ".join(text.upper().replace("ST.", "ST").split())


def _spelling_variants(name: str) -> list[str]:
    """Generated full-name variants ("LA LAKERS", "SAINT LOUIS BLUES")."""
    upper = _upper(name)
    variants = []
    if upper.startswith("LOS ANGELES "):
        variants.append("LA " + upper[len("LOS ANGELES ") :])
    if upper.startswith("ST LOUIS "):
        variants.append("SAINT LOUIS " + upper[len("ST LOUIS ") :])
    return variants


def _build_full_name_variants() -> dict[str, str]:
    variants: dict[str, str] = {}
    for team in ALL_TEAMS:
        canonical = _upper(team.name)
        for alias in (*team.aliases, *_spelling_variants(team.name)):
            variants[_upper(alias)] = canonical
    return variants


def _build_team_ids() -> dict[str, int]:
    ids: dict[str, int] = {}
    for channel in ALL_CHANNELS:
        ids[_upper(channel.name)] = channel.stream_id
    for team in ALL_TEAMS:
        ids[_upper(team.name)] = team.stream_id
    for variant, canonical in FULL_NAME_VARIANTS.items():
        ids[variant] = ids[canonical]
    return ids


def _build_nicknames() -> tuple[dict[LeagueId, dict[str, int]], dict[str, int]]:
    by_league: dict[LeagueId, dict[str, int]] = {}
    seen: dict[str, set[int]] = {}
    for team in ALL_TEAMS:
        table = by_league.setdefault(team.league_id, {})
        for nickname in team.nicknames:
            table[nickname] = team.stream_id
            seen.setdefault(nickname, set()).add(team.stream_id)
    unambiguous = {nick: next(iter(ids)) for nick, ids in seen.items() if len(ids) == 1}
    return by_league, unambiguous


# Full-name spelling variant -> canonical full name
FULL_NAME_VARIANTS: dict[str, str] = _build_full_name_variants()

# Canonical full name (or variant, or channel name) -> stream ID
TEAM_IDS: dict[str, int] = _build_team_ids()

# Per-league nickname -> stream ID, plus nicknames unique across all leagues
NICKNAMES_BY_LEAGUE, UNAMBIGUOUS_NICKNAMES = _build_nicknames()

ABBREVIATIONS_BY_LEAGUE: dict[LeagueId, dict[str, int]] = {}
for _team in ALL_TEAMS:
    ABBREVIATIONS_BY_LEAGUE.setdefault(_team.league_id, {})[_team.abbreviation] = _team.stream_id
del _team


# =============================================================================
# LEAGUE-PREFIXED FORMS
# The provider's playlist names many channels with a league prefix, e.g.
# "NFL-BEARS", "VIP NBA LAKERS", "VIP NHL BOSTON BRUINS", "MLB - YANKEES".
# =============================================================================


def prefixed_forms(
    league_id: LeagueId | None,
    name: str,
    nicknames: tuple[str, ...] = (),
    abbreviation: str = "",
) -> list[str]:
    """Build the league-prefixed keys for a team, in lookup order.

    Args:
        league_id: League the prefix belongs to; other leagues yield nothing
        name: Normalized team name (full name or whatever the feed gave)
        nicknames: Known nicknames for the team, if any
        abbreviation: Team abbreviation, used by the MLB form

    Returns:
        Uppercase candidate keys, duplicates removed
    """
    name = _upper(name)
    if not name:
        return []

    nicks = [_upper(n) for n in nicknames if n]
    forms: list[str] = []
    if league_id == LeagueId.NFL:
        forms.append(f"NFL-{name.split()[-1]}")
        forms.extend(f"NFL-{nick}" for nick in nicks)
    elif league_id == LeagueId.NBA:
        forms.append(f"VIP NBA {name}")
        forms.extend(f"VIP NBA {nick}" for nick in nicks)
    elif league_id == LeagueId.NHL:
        forms.append(f"VIP NHL {name}")
        forms.extend(f"VIP NHL {nick}" for nick in nicks)
    elif league_id == LeagueId.MLB:
        forms.append(f"MLB - {name}")
        forms.extend(f"MLB - {nick}" for nick in nicks)
        if abbreviation:
            forms.append(f"MLB - {_upper(abbreviation)}")

    return list(dict.fromkeys(forms))
