"""Shared constants for raidchat."""

import re

# RAID item ids: RAID-12, R-3, a-7 ... (normalised to upper case on extraction)
ITEM_ID_PATTERN = re.compile(r'\b(RAID|R|A|I|D)-(\d+)\b', re.IGNORECASE)

# Intent confidence levels
CONFIDENCE_MATCHED = 0.9           # phrase group and its required entity found
CONFIDENCE_MISSING_ENTITY = 0.7    # phrase group found, entity missing
CONFIDENCE_UNKNOWN = 0.0

# Replies that skip an optional dialogue step
SKIP_WORDS = frozenset({"", "skip", "none", "-", "n/a"})

# Replies that abandon the active conversation
CANCEL_WORDS = frozenset({"cancel", "stop", "abort", "never mind", "nevermind"})
