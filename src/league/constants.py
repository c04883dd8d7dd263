"""
League-wide constants: division order, headcounts, bout counts and sides.
"""

# Divisions, highest first
MAKUUCHI = "Makuuchi"
JURYO = "Juryo"
MAKUSHITA = "Makushita"
SANDANME = "Sandanme"
JONIDAN = "Jonidan"
JONOKUCHI = "Jonokuchi"
MAEZUMO = "Maezumo"

DIVISION_ORDER = [MAKUUCHI, JURYO, MAKUSHITA, SANDANME, JONIDAN, JONOKUCHI, MAEZUMO]

# The unranked entry pool below the lowest ranked division
ENTRY_POOL = MAEZUMO
RANKED_DIVISIONS = DIVISION_ORDER[:-1]

# Sekitori divisions fight every day
ELITE_DIVISIONS = [MAKUUCHI, JURYO]
LOWER_DIVISIONS = [MAKUSHITA, SANDANME, JONIDAN, JONOKUCHI]

# Default headcount per ranked division
DIVISION_SLOTS = {
    MAKUUCHI: 42,
    JURYO: 28,
    MAKUSHITA: 120,
    SANDANME: 180,
    JONIDAN: 200,
    JONOKUCHI: 60,
}

# Makuuchi named bands, top to bottom
YOKOZUNA = "Yokozuna"
OZEKI = "Ozeki"
SEKIWAKE = "Sekiwake"
KOMUSUBI = "Komusubi"
MAEGASHIRA = "Maegashira"

# Tournament shape
TOURNAMENT_DAYS = 15
SEKITORI_BOUTS = 15
LOWER_BOUTS = 7

# Sides within a rank number
EAST = "East"
WEST = "West"

# Default id of the tracked competitor
PLAYER_ID = "PLAYER"
